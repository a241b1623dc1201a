"""
Integration tests for network ESC/POS printers.

These tests require real hardware to run and are skipped unless a
printer is given:

    pytest tests/ -m hardware --printer-host=192.168.1.50[:9100]
"""

import pytest
from PIL import Image

from tmprinter.barcode import Barcode
from tmprinter.commands import Alignment, HriPosition

# Fixtures (printer_host, connected_writer) are defined in conftest.py


class TestPrinting:
    """Tests that put ink on paper."""

    @pytest.mark.hardware
    def test_print_text(self, connected_writer):
        connected_writer.speed(5)
        connected_writer.justify(Alignment.LEFT)
        connected_writer.text("Hello,\n")
        connected_writer.justify(Alignment.CENTER)
        connected_writer.text("there,\n")
        connected_writer.justify(Alignment.RIGHT)
        connected_writer.text("World!\n")
        connected_writer.justify(Alignment.LEFT)
        connected_writer.feed(5)
        connected_writer.cut()

    @pytest.mark.hardware
    def test_print_image(self, connected_writer):
        width = connected_writer.model.max_image_width
        img = Image.new("L", (width, 64), color=0)

        connected_writer.print_image(img)
        connected_writer.feed(5)
        connected_writer.cut()

    @pytest.mark.hardware
    def test_print_barcode(self, connected_writer):
        connected_writer.set_hri_position(HriPosition.BELOW)
        connected_writer.print_barcode(Barcode.upca("03600029145"))
        connected_writer.feed(5)
        connected_writer.cut()
