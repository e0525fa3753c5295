from .surface import FrameSnapshot, HeadlessSurface, RenderSurface

__all__ = ["FrameSnapshot", "HeadlessSurface", "RenderSurface"]
