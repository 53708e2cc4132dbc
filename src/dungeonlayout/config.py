"""
Configuration for the modular room layout engine
"""

# Grid
TILE_PX = 128
HALF_TILE_PX = 64  # door placement grid and pillar clearance

# Walls
WALL_THICKNESS_PX = 32  # centered on tile boundaries
WALL_SPRITE_WIDTHS = (256, 128, 64)  # largest first
SEGMENT_PX = 256  # legacy segment-state chunk

# Doors and pillars
DOOR_WIDTH_PX = 128
DOOR_CORNER_MARGIN_PX = HALF_TILE_PX
PILLAR_SIZE_PX = 64

# Drag and drop
SNAP_THRESHOLD_PX = 128
SNAP_TIE_BAND_PX = 10
OVERLAP_EPSILON = 0.1

# Styles
DEFAULT_WALL_STYLE_ID = "worn-castle"
DEFAULT_FLOOR_STYLE_ID = "stone"

# Id prefixes
ROOM_ID_PREFIX = "mr"
WALL_GROUP_ID_PREFIX = "wg"
DOOR_ID_PREFIX = "door"
