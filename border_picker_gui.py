#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Borders Color Picker: GTK window around border_picker.

Pick the active/inactive window border colors and the border width;
every change runs `borders` and saves ~/.config/border_picker.json.
Changes are coalesced with a short GLib timeout so dragging the slider
does not spawn one process per pixel.

  border-picker            open the window
  border-picker --apply    re-apply the saved settings and exit
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

import gi
gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gdk, GLib, Gtk

from border_picker import (
    WIDTH_MAX,
    WIDTH_MIN,
    WIDTH_STEP,
    Color,
    SettingsController,
    apply_saved,
    clamp_width,
    encode_color,
    format_width,
)

logger = logging.getLogger("border_picker.gui")

APPLY_DELAY_MS = 250


# ----------------------------
# UI
# ----------------------------

class ColorDisplay(Gtk.Box):
    """Hex label plus a 50x50 sample of the color."""

    def __init__(self, color: Color):
        super().__init__(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        self.color = color
        self.label = Gtk.Label(label=encode_color(color))
        self.label.set_selectable(True)
        self.pack_start(self.label, False, False, 0)

        self.sample = Gtk.DrawingArea()
        self.sample.set_size_request(50, 50)
        self.sample.connect("draw", self.on_draw)
        self.pack_start(self.sample, False, False, 0)

    def set_color(self, color: Color):
        self.color = color
        self.label.set_text(encode_color(color))
        self.sample.queue_draw()

    def on_draw(self, area, cr):
        alloc = area.get_allocation()
        # checkerboard so the alpha channel stays visible
        cr.set_source_rgb(0.8, 0.8, 0.8)
        cr.rectangle(0, 0, alloc.width, alloc.height)
        cr.fill()
        cr.set_source_rgb(0.55, 0.55, 0.55)
        step = 10
        for y in range(0, alloc.height, step):
            for x in range(0, alloc.width, step):
                if (x // step + y // step) % 2:
                    cr.rectangle(x, y, step, step)
        cr.fill()
        r, g, b, a = self.color.to_rgba()
        cr.set_source_rgba(r, g, b, a)
        cr.rectangle(0, 0, alloc.width, alloc.height)
        cr.fill()
        return False


def make_color_section(title: str, color: Color,
                       on_changed: Callable[[Color], None]) -> Gtk.Box:
    section = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
    lbl = Gtk.Label(label=title)
    lbl.set_xalign(0)
    section.pack_start(lbl, False, False, 0)

    row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
    section.pack_start(row, False, False, 0)

    chooser = Gtk.ColorChooserWidget()
    chooser.set_use_alpha(True)
    chooser.set_rgba(Gdk.RGBA(*color.to_rgba()))
    row.pack_start(chooser, False, False, 0)

    display = ColorDisplay(color)
    row.pack_start(display, False, False, 0)

    def changed(widget, _pspec):
        rgba = widget.get_rgba()
        c = Color.from_rgba(rgba.red, rgba.green, rgba.blue, rgba.alpha)
        display.set_color(c)
        on_changed(c)

    chooser.connect("notify::rgba", changed)
    return section


class BorderPickerWindow(Gtk.Window):
    def __init__(self, controller: SettingsController):
        super().__init__(title="Borders Color Picker")
        self.controller = controller
        self.set_default_size(600, 800)
        self.set_border_width(14)

        self._apply_id: Optional[int] = None

        self.connect("delete-event", self.on_delete_event)

        # Gtk.Scale clamps silently; keep the label and the controller in step
        controller.set_border_width(clamp_width(controller.settings.border_width))
        s = controller.settings
        outer = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=12)
        self.add(outer)

        outer.pack_start(make_color_section("Active Color", s.active_color, self.on_active_changed),
                         False, False, 0)
        outer.pack_start(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL), False, False, 0)
        outer.pack_start(make_color_section("Inactive Color", s.inactive_color, self.on_inactive_changed),
                         False, False, 0)
        outer.pack_start(Gtk.Separator(orientation=Gtk.Orientation.HORIZONTAL), False, False, 0)

        width_section = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=6)
        lbl = Gtk.Label(label="Border Width")
        lbl.set_xalign(0)
        width_section.pack_start(lbl, False, False, 0)

        row = Gtk.Box(orientation=Gtk.Orientation.HORIZONTAL, spacing=10)
        self.scale_width = Gtk.Scale.new_with_range(Gtk.Orientation.HORIZONTAL, WIDTH_MIN, WIDTH_MAX, WIDTH_STEP)
        self.scale_width.set_digits(1)
        self.scale_width.set_draw_value(False)
        self.scale_width.set_size_request(300, -1)
        self.scale_width.set_value(s.border_width)
        self.scale_width.connect("value-changed", self.on_width_changed)
        row.pack_start(self.scale_width, False, False, 0)

        self.lbl_width = Gtk.Label(label=format_width(s.border_width))
        row.pack_end(self.lbl_width, False, False, 0)
        width_section.pack_start(row, False, False, 0)
        outer.pack_start(width_section, False, False, 0)

        self.status = Gtk.Label(label="")
        self.status.set_xalign(0)
        self.status.set_line_wrap(True)
        outer.pack_end(self.status, False, False, 0)

    def on_active_changed(self, c: Color):
        self.controller.set_active_color(c)
        self._schedule_apply()

    def on_inactive_changed(self, c: Color):
        self.controller.set_inactive_color(c)
        self._schedule_apply()

    def on_width_changed(self, scale: Gtk.Scale):
        width = round(scale.get_value(), 1)
        self.lbl_width.set_text(format_width(width))
        self.controller.set_border_width(width)
        self._schedule_apply()

    def on_delete_event(self, *_):
        if self._apply_id is not None:
            logger.debug("flushing pending apply on close")
            GLib.source_remove(self._apply_id)
            self._apply_now()
        return False

    def _schedule_apply(self):
        if self._apply_id is not None:
            GLib.source_remove(self._apply_id)
        self._apply_id = GLib.timeout_add(APPLY_DELAY_MS, self._apply_debounced)

    def _apply_debounced(self):
        self._apply_now()
        return False

    def _apply_now(self):
        self._apply_id = None
        ok = self.controller.commit()
        if ok:
            s = self.controller.settings
            self.status.set_text(
                f"Applied: active_color={encode_color(s.active_color)}, "
                f"inactive_color={encode_color(s.inactive_color)}, "
                f"width={format_width(s.border_width)}"
            )
        else:
            self.status.set_text(f"Error: {self.controller.last_error}")


# ----------------------------
# Startup
# ----------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pick window border colors and width for borders.")
    parser.add_argument("--apply", action="store_true",
                        help="Apply the saved settings without opening the window.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)

def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.apply:
        return apply_saved()

    win = BorderPickerWindow(SettingsController.from_disk())
    win.connect("destroy", Gtk.main_quit)
    win.show_all()
    Gtk.main()
    return 0


if __name__ == "__main__":
    sys.exit(main())
