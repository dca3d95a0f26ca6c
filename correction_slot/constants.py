"""42 intra endpoints and defaults."""

API_BASE_URL = "https://api.intra.42.fr"
AUTHORIZE_URL = f"{API_BASE_URL}/oauth/authorize"
TOKEN_URL = f"{API_BASE_URL}/oauth/token"
REDIRECT_URI = "https://github.com/D4ryl00/42-correction-slot"

TOKEN_FILENAME = "token.json"
AUTH_STATE = "state-token"
HTTP_TIMEOUT_SEC = 30.0

ME_PATH = "/v2/me"
SLOTS_PATH = "/v2/projects/{project_id}/slots"
SLOTS_PAGE_SIZE = 100

WAITING_FOR_CORRECTION = "waiting_for_correction"
HORIZON_DAYS = 5
WINDOW_HOUR_MIN = 9
WINDOW_HOUR_MAX = 18
WINDOW_MINUTE_MIN = 0
WINDOW_MINUTE_MAX = 0

ENV_PREFIX = "CORRECTION_SLOT_"
