from .line_model import LineModel, LineStopModel

__all__ = ["LineModel", "LineStopModel"]
