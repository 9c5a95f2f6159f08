"""Models package."""

from .user import User
from .video import Video
from .video_assignment import VideoAssignment
from .watch_history import WatchHistory
from .watch_later import WatchLater
from .saved_video import SavedVideo
from .search_history import SearchHistory
