from .canvas import RGBA, draw_hline, draw_pixel, draw_vline, fill_rect, new_canvas, rgba
from .draw_lines import clip_segment, draw_polyline, draw_segment
from .draw_text import draw_text, line_height, text_size

__all__ = [
    "RGBA",
    "clip_segment",
    "draw_hline",
    "draw_pixel",
    "draw_polyline",
    "draw_segment",
    "draw_text",
    "draw_vline",
    "fill_rect",
    "line_height",
    "new_canvas",
    "rgba",
    "text_size",
]
