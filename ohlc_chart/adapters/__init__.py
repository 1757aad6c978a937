from .normalize import series_from_arrays, series_from_frame, series_from_rows

__all__ = ["series_from_arrays", "series_from_frame", "series_from_rows"]
