"""starscene – procedural star field and timed scene session (core).

This package contains the core components of the interactive planet scene:
- Star-field generation & StarBatch container (core.generator, core.pointcloud)
- Progressive render-buffer streaming (core.streamer)
- Cancellable timer service on a frame-driven clock (core.timers)
- Camera flight state machine & scene spin (motion.flight, motion.spin)
- Interaction sequencer, loading screen, session state (session.*)
- Persistence gateway over key/value stores (persistence.gateway)
- LAS/LAZ, NPZ and PLY star-field writers (core.exporter)

Rendering itself is left to a RenderSurface implementation; a headless one
is provided for tests and simulations.
"""

from .core.pointcloud import StarBatch
from .core.generator import (
    TEMPERATURE_BANDS, SIZE_TIERS, generate_star_field, iter_star_batches,
)
from .core.streamer import ProgressiveBufferStreamer, RenderBuffer
from .core.timers import TimerService, ScheduledTask
from .core.exporter import LasWriter, PlyWriter, NpzWriter, read_star_file
from .motion.pose import CameraPose
from .motion.flight import CameraFlightController, CameraPhase
from .motion.spin import SceneSpin
from .persistence.records import ClickedStar, PersistedState
from .persistence.gateway import PersistenceGateway, MemoryStore, JsonFileStore, StorageKeys
from .session.state import AnimationPhase, SessionState
from .session.sequencer import InteractionSequencer, SequenceTimings
from .session.loading import LoadingScreen
from .session.app import SceneSession
from .render.surface import FrameSnapshot, HeadlessSurface, RenderSurface
