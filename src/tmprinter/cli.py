"""
Command-Line Interface for ESC/POS thermal printers.

Usage:
    tmprint scan                              - Scan for BLE printers
    tmprint image IMAGE --host HOST[:PORT]    - Print an image
    tmprint text MESSAGE --serial /dev/ttyUSB0
    tmprint barcode 03600029145 --ble ADDRESS
    tmprint qr "https://example.com" --host HOST
"""

import asyncio
import sys
from typing import Optional

import click

from .async_writer import AsyncWriter
from .barcode import Barcode
from .commands import Alignment, HriPosition
from .connection import BLEConnection, TCPConnection, open_serial
from .errors import BarcodeError, PrinterError
from .image import fit_to_width, load_image
from .models import Model
from .writer import Writer

ALIGNMENTS = {a.name.lower(): a for a in Alignment}

HRI_POSITIONS = {
    "none": HriPosition.NOT_PRINTED,
    "above": HriPosition.ABOVE,
    "below": HriPosition.BELOW,
    "both": HriPosition.BOTH,
}


def validate_model(ctx, param, value):
    """Convert a model name to a Model.

    Raises:
        click.BadParameter: If the model is unknown
    """
    try:
        return Model.from_name(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from None


def validate_barcode(ctx, param, value):
    """Validate UPC-A digits and build the barcode."""
    try:
        return Barcode.upca(value)
    except BarcodeError as e:
        raise click.BadParameter(str(e)) from None


def transport_options(f):
    """Attach the transport selection options to a printing command."""
    options = [
        click.option("--host", envvar="TMPRINTER_HOST",
                     help="Network printer HOST[:PORT] (default port 9100)"),
        click.option("--serial", "serial_port", envvar="TMPRINTER_SERIAL",
                     help="Serial device of the printer"),
        click.option("--baudrate", default=9600, show_default=True,
                     help="Serial baud rate"),
        click.option("--ble", "ble_address", help="Bluetooth LE printer address"),
        click.option("--feed", "feed_lines", type=click.IntRange(0, 255), default=5,
                     show_default=True, help="Lines to feed after the job"),
        click.option("--no-cut", is_flag=True, help="Don't cut the paper after the job"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def open_transport(host: Optional[str], serial_port: Optional[str], baudrate: int):
    """Open the blocking transport selected on the command line."""
    if host:
        return TCPConnection.from_address(host)
    return open_serial(serial_port, baudrate=baudrate)


def _finish(steps: list, feed_lines: int, no_cut: bool) -> list:
    steps = list(steps)
    if feed_lines:
        steps.append(("feed", feed_lines))
    if not no_cut:
        steps.append(("cut",))
    return steps


def _run_sync(model: Model, transport, steps: list, debug: bool):
    writer = Writer(model, transport)
    writer.set_debug(debug)
    try:
        writer.init()
        for name, *args in steps:
            getattr(writer, name)(*args)
    finally:
        writer.close()


async def _run_ble(model: Model, address: str, steps: list, debug: bool):
    connection = BLEConnection()
    connection.set_debug(debug)
    await connection.connect(address)

    writer = AsyncWriter(model, connection)
    writer.set_debug(debug)
    try:
        await writer.init()
        for name, *args in steps:
            await getattr(writer, name)(*args)
    finally:
        await writer.close()


def run_job(ctx, steps: list, host, serial_port, baudrate, ble_address, feed_lines, no_cut):
    """Send a job over the selected transport, exiting with status 1 on failure."""
    selected = [t for t in (host, serial_port, ble_address) if t]
    if len(selected) != 1:
        raise click.UsageError("Select exactly one of --host, --serial or --ble")

    model = ctx.obj["model"]
    debug = ctx.obj["debug"]
    steps = _finish(steps, feed_lines, no_cut)

    try:
        if ble_address:
            asyncio.run(_run_ble(model, ble_address, steps, debug))
        else:
            _run_sync(model, open_transport(host, serial_port, baudrate), steps, debug)
    except PrinterError as e:
        click.echo(f"Print failed: {e}", err=True)
        sys.exit(1)
    except (OSError, ValueError) as e:
        click.echo(f"Connection error: {e}", err=True)
        sys.exit(1)

    click.echo("Print complete!")


@click.group()
@click.option("--model", "-m", envvar="TMPRINTER_MODEL", default="generic",
              show_default=True, callback=validate_model,
              help="Printer model (generic, t20ii, t30ii)")
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.pass_context
def main(ctx, model, debug):
    """ESC/POS Thermal Printer CLI."""
    ctx.ensure_object(dict)
    ctx.obj["model"] = model
    ctx.obj["debug"] = debug


@main.command()
@click.option("--timeout", default=10.0, help="Scan timeout in seconds")
def scan(timeout):
    """Scan for Bluetooth LE printers."""

    async def _scan():
        click.echo(f"Scanning for printers ({timeout}s)...")
        printers = await BLEConnection.scan(timeout=timeout)

        if not printers:
            click.echo("No printers found.")
            return

        click.echo(f"\nFound {len(printers)} printer(s):\n")
        for p in printers:
            click.echo(f"  {p}")

    asyncio.run(_scan())


@main.command("image")
@click.argument("image", type=click.Path(exists=True, dir_okay=False))
@click.option("--fit", is_flag=True, help="Scale the image down to the printer width")
@click.option("--unchecked", is_flag=True,
              help="Skip the model width check (may print garbage)")
@click.option("--speed", type=click.IntRange(0, 255), default=None, help="Print speed")
@transport_options
@click.pass_context
def print_image(ctx, image, fit, unchecked, speed, **transport):
    """Print an image file."""
    model = ctx.obj["model"]
    try:
        img = load_image(image)
    except (OSError, PrinterError, ValueError) as e:
        click.echo(f"Image error: {e}", err=True)
        sys.exit(1)

    if fit:
        img = fit_to_width(img, model.max_image_width)

    steps = []
    if speed is not None:
        steps.append(("speed", speed))
    steps.append(("print_image_unchecked" if unchecked else "print_image", img))
    run_job(ctx, steps, **transport)


@main.command("text")
@click.argument("message")
@click.option("--align", type=click.Choice(list(ALIGNMENTS)), default="left",
              show_default=True, help="Justification")
@click.option("--unicode", "use_unicode", is_flag=True,
              help="Send UTF-8 (only on models that support it)")
@click.option("--bold", is_flag=True, help="Emphasized text")
@click.option("--underline", is_flag=True, help="Underlined text")
@click.option("--double-strike", is_flag=True, help="Double-strike text")
@click.option("--reverse", is_flag=True, help="White on black text")
@click.option("--speed", type=click.IntRange(0, 255), default=None, help="Print speed")
@transport_options
@click.pass_context
def print_text(ctx, message, align, use_unicode, bold, underline, double_strike,
               reverse, speed, **transport):
    """Print a line of text."""
    steps = []
    if use_unicode:
        steps.append(("set_unicode",))
    if speed is not None:
        steps.append(("speed", speed))
    steps.append(("justify", ALIGNMENTS[align]))

    toggles = [
        ("emphasize", bold),
        ("underline", underline),
        ("double_strike", double_strike),
        ("reverse", reverse),
    ]
    for name, enabled in toggles:
        if enabled:
            steps.append((name, True))

    steps.append(("text", message if message.endswith("\n") else message + "\n"))

    for name, enabled in toggles:
        if enabled:
            steps.append((name, False))
    if ALIGNMENTS[align] is not Alignment.LEFT:
        steps.append(("justify", Alignment.LEFT))

    run_job(ctx, steps, **transport)


@main.command("barcode")
@click.argument("digits", callback=validate_barcode)
@click.option("--hri", type=click.Choice(list(HRI_POSITIONS)), default="below",
              show_default=True, help="Position of the human-readable digits")
@transport_options
@click.pass_context
def print_barcode(ctx, digits, hri, **transport):
    """Print a UPC-A barcode (11 digits, or 12 with check digit)."""
    steps = [
        ("set_hri_position", HRI_POSITIONS[hri]),
        ("print_barcode", digits),
    ]
    run_job(ctx, steps, **transport)


@main.command("qr")
@click.argument("data")
@click.option("--size", type=click.Choice(["small", "medium", "large"]), default="medium",
              show_default=True, help="QR code size")
@click.option("--ec", type=click.Choice(["L", "M", "Q", "H"]), default="M",
              show_default=True, help="Error correction level")
@transport_options
@click.pass_context
def print_qr(ctx, data, size, ec, **transport):
    """Print a QR code (requires tmprinter[qr])."""
    from .qr import generate_qr

    model = ctx.obj["model"]
    try:
        img = generate_qr(data, size=size, error_correction=ec,
                          max_width=model.max_image_width)
    except (ImportError, ValueError) as e:
        click.echo(f"QR error: {e}", err=True)
        sys.exit(1)

    steps = [
        ("justify", Alignment.CENTER),
        ("print_image", img),
        ("justify", Alignment.LEFT),
    ]
    run_job(ctx, steps, **transport)


if __name__ == "__main__":
    main()
