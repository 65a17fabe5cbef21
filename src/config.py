"""Shared constants for peerduel. All game-wide configuration lives here."""

# --- Display ---
SCREEN_WIDTH = 640
SCREEN_HEIGHT = 640
FPS = 30
CELL_RENDER_SIZE = 150  # pixels per grid cell
GRID_LINE_WIDTH = 6
TITLE_HEIGHT = 60  # pixels reserved above the grid for the status title

# --- Input ---
INPUT_POLL_INTERVAL_S = 1 / FPS  # how often the pygame event queue is drained

# --- Networking ---
DEFAULT_PORT = 23457
CONNECT_TIMEOUT_S = 30.0
CLOSE_TIMEOUT_S = 2.0  # wait this long for the peer's EOF after a finished game

# --- Protocol ---
HANDSHAKE_MARKER = 0  # value ignored by the receiver
GRID_CELLS = 9
KEY_SIZE = 32    # ChaCha20-Poly1305 key
NONCE_SIZE = 12  # ChaCha20-Poly1305 nonce
TAG_SIZE = 16    # Poly1305 tag appended to the ciphertext
CIPHERTEXT_SIZE = 1 + TAG_SIZE  # one encoded guess byte + tag

# --- Colors ---
COLOR_BG = (30, 30, 36)
COLOR_GRID = (200, 200, 200)
COLOR_SELF = (220, 80, 60)
COLOR_OPPONENT = (60, 120, 220)
COLOR_HINT = (90, 90, 100)
COLOR_TEXT = (230, 230, 230)
COLOR_ABORTED = (220, 160, 40)
