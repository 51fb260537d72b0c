from game.gaze.channel import GazeChannel, GazeSource, GazeSubscription
from game.gaze.smoothing import GazeSmoother, SmoothingState, smooth_step

__all__ = ["GazeChannel", "GazeSource", "GazeSubscription", "GazeSmoother", "SmoothingState", "smooth_step"]
