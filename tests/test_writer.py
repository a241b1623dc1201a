"""Tests for the blocking writer."""

import pytest
from PIL import Image

from tmprinter.barcode import Barcode
from tmprinter.commands import Alignment, Feed, HriPosition, Raw
from tmprinter.errors import (
    ImageTooLargeError,
    ImageWidthError,
    PrinterError,
    TransportError,
    UnsupportedError,
    WriterStateError,
)
from tmprinter.models import CharacterSet, Model
from tmprinter.writer import Writer, WriterState

INIT = bytes([0x1B, 0x40])


class FailingTransport:
    """Transport whose writes always fail."""

    def __init__(self, error=None):
        self.error = error or BrokenPipeError("printer went away")
        self.attempts = 0

    def write(self, data):
        self.attempts += 1
        raise self.error


class ShortWriteTransport:
    """Transport that accepts at most 3 bytes per call."""

    def __init__(self):
        self.received = bytearray()
        self.calls = 0

    def write(self, data):
        self.calls += 1
        chunk = bytes(data[:3])
        self.received.extend(chunk)
        return len(chunk)


class TestOpen:
    """Test writer initialization."""

    def test_open_sends_init_once(self, transport):
        writer = Writer.open(Model.T20II, transport)

        assert transport.writes == [INIT]
        assert writer.state is WriterState.OPEN

    def test_init_precedes_commands(self, transport):
        writer = Writer.open(Model.T20II, transport)
        writer.cut()

        assert transport.writes == [INIT, bytes([0x1B, 0x69])]

    def test_commands_before_open_are_refused(self, transport):
        writer = Writer(Model.T20II, transport)

        with pytest.raises(WriterStateError):
            writer.feed(1)
        assert transport.writes == []

    def test_open_failure_raises_transport_error(self):
        with pytest.raises(TransportError):
            Writer.open(Model.GENERIC, FailingTransport())


class TestCommands:
    """Test that each operation transmits one encoded command."""

    @pytest.fixture
    def writer(self, transport):
        writer = Writer.open(Model.T20II, transport)
        transport.writes.clear()
        return writer

    @pytest.mark.parametrize("method,args,expected", [
        ("cut", (), [0x1B, 0x69]),
        ("underline", (True,), [0x1B, 0x2D, 0x01]),
        ("emphasize", (True,), [0x1B, 0x45, 0xFF]),
        ("double_strike", (False,), [0x1B, 0x47, 0x00]),
        ("reverse", (True,), [0x1B, 0x42, 0xFF]),
        ("justify", (Alignment.CENTER,), [0x1B, 0x61, 0x01]),
        ("feed", (5,), [0x1B, 0x64, 0x05]),
        ("speed", (9,), [0x1D, 0x28, 0x4B, 0x02, 0x00, 0x32, 0x00]),
        ("set_hri_position", (HriPosition.BELOW,), [0x1D, 0x48, 0x02]),
    ])
    def test_single_write(self, writer, transport, method, args, expected):
        getattr(writer, method)(*args)

        assert transport.writes == [bytes(expected)]

    def test_print_barcode(self, writer, transport):
        writer.print_barcode(Barcode.upca("03600029145"))

        assert transport.writes == [bytes([0x1D, 0x6B, 65, 12]) + b"036000291452"]

    def test_write_command(self, writer, transport):
        writer.write_command(Feed(3))
        writer.write_command(Raw(b"abc"))

        assert transport.writes == [bytes([0x1B, 0x64, 0x03]), b"abc"]

    def test_raw_write(self, writer, transport):
        writer.write(b"HACK THE PLANET\n")

        assert transport.writes == [b"HACK THE PLANET\n"]

    def test_calls_are_written_in_order(self, writer, transport):
        writer.justify(Alignment.LEFT)
        writer.write(b"Hello,\n")
        writer.justify(Alignment.RIGHT)
        writer.write(b"World!\n")

        assert transport.data == (
            b"\x1b\x61\x00Hello,\n\x1b\x61\x02World!\n"
        )


class TestCharacterSet:
    """Test capability gating of character sets."""

    def test_unicode_supported_on_t30ii(self, transport):
        writer = Writer.open(Model.T30II, transport)

        writer.set_unicode()

        assert transport.writes[-1] == bytes([0x1C, 0x28, 0x43, 0x02, 0x00, 0x30, 0x02])
        assert writer.active_character_set is CharacterSet.UNICODE

    @pytest.mark.parametrize("model", [Model.GENERIC, Model.T20II])
    def test_unicode_refused_before_transmit(self, transport, model):
        writer = Writer.open(model, transport)

        with pytest.raises(UnsupportedError):
            writer.character_set(CharacterSet.UNICODE)

        assert transport.writes == [INIT]
        assert writer.active_character_set is CharacterSet.RAW

    def test_raw_always_allowed(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        writer.character_set(CharacterSet.RAW)

        assert transport.writes[-1] == bytes([0x1C, 0x28, 0x43, 0x02, 0x00, 0x30, 0x01])


class TestText:
    """Test text encoding for the active character set."""

    def test_raw_uses_code_page_437(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        writer.text("53°")

        assert transport.writes[-1] == b"53\xf8"

    def test_raw_replaces_unencodable(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        writer.text("€")

        assert transport.writes[-1] == b"?"

    def test_unicode_sends_utf8(self, transport):
        writer = Writer.open(Model.T30II, transport)
        writer.set_unicode()

        writer.text("hello there testing one two 53°")

        assert transport.writes[-1] == "hello there testing one two 53°".encode("utf-8")

    def test_init_resets_to_raw(self, transport):
        writer = Writer.open(Model.T30II, transport)
        writer.set_unicode()

        writer.init()

        assert writer.active_character_set is CharacterSet.RAW


class TestImages:
    """Test checked and unchecked image printing."""

    def test_checked_at_max_width(self, transport):
        writer = Writer.open(Model.T20II, transport)

        writer.print_image(Image.new("L", (576, 2), color=0))

        assert len(transport.writes) == 2
        assert transport.writes[1][:8] == bytes([0x1D, 0x76, 0x30, 0x00, 72, 0, 2, 0])

    def test_checked_over_width_sends_nothing(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        with pytest.raises(ImageWidthError):
            writer.print_image(Image.new("L", (576, 2)))

        assert transport.writes == [INIT]

    def test_unchecked_over_width_is_sent(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        writer.print_image_unchecked(Image.new("L", (576, 2)))

        assert len(transport.writes) == 2
        assert writer.state is WriterState.OPEN

    def test_unchecked_still_enforces_packing_limit(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        with pytest.raises(ImageTooLargeError):
            writer.print_image_unchecked(Image.new("L", (8, 0x10000)))

        assert transport.writes == [INIT]

    def test_checked_and_unchecked_encode_identically(self):
        img = Image.new("L", (16, 4), color=100)
        checked, unchecked = [], []

        for sink, method in ((checked, "print_image"), (unchecked, "print_image_unchecked")):
            t = ShortWriteTransport()
            getattr(Writer.open(Model.T20II, t), method)(img)
            sink.append(bytes(t.received))

        assert checked == unchecked


class TestTransportFailures:
    """Test transport error propagation."""

    def test_failure_wrapped_with_cause(self, transport):
        writer = Writer.open(Model.GENERIC, transport)
        error = BrokenPipeError("printer went away")
        writer.transport = FailingTransport(error)

        with pytest.raises(TransportError) as exc_info:
            writer.feed(1)

        assert exc_info.value.original is error
        assert exc_info.value.__cause__ is error
        assert isinstance(exc_info.value, PrinterError)

    def test_no_retry_and_state_unchanged(self, transport):
        writer = Writer.open(Model.T30II, transport)
        failing = FailingTransport()
        writer.transport = failing

        with pytest.raises(TransportError):
            writer.set_unicode()

        assert failing.attempts == 1
        assert writer.state is WriterState.OPEN
        assert writer.model is Model.T30II
        assert writer.active_character_set is CharacterSet.RAW

    def test_short_writes_are_completed(self):
        t = ShortWriteTransport()
        writer = Writer.open(Model.GENERIC, t)

        writer.write(b"0123456789")

        assert bytes(t.received) == INIT + b"0123456789"

    def test_zero_byte_write_is_a_transport_error(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        class Stalled:
            def write(self, data):
                return 0

        writer.transport = Stalled()
        with pytest.raises(TransportError, match="accepted no bytes"):
            writer.cut()


class TestClose:
    """Test the closed state."""

    def test_close_closes_transport_without_sending(self, transport):
        writer = Writer.open(Model.GENERIC, transport)

        writer.close()

        assert transport.closed
        assert transport.writes == [INIT]
        assert writer.state is WriterState.CLOSED

    def test_operations_after_close_refused(self, transport):
        writer = Writer.open(Model.GENERIC, transport)
        writer.close()

        with pytest.raises(WriterStateError):
            writer.cut()
        with pytest.raises(WriterStateError):
            writer.init()

    def test_context_manager(self, transport):
        with Writer.open(Model.GENERIC, transport) as writer:
            writer.feed(2)

        assert transport.closed
        assert writer.state is WriterState.CLOSED


class TestDebug:
    """Test debug output."""

    def test_silent_by_default(self, transport, capsys):
        Writer.open(Model.GENERIC, transport).cut()

        assert capsys.readouterr().out == ""

    def test_debug_logs_tx(self, transport, capsys):
        writer = Writer.open(Model.GENERIC, transport)
        writer.set_debug(True)

        writer.cut()

        assert "[TM] TX: 1b69" in capsys.readouterr().out
