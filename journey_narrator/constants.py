"""All magic numbers and configuration constants."""

LOOKAHEAD_SEGMENTS = 3              # segments kept generated ahead of playback
SECONDS_PER_SEGMENT = 120           # target narration length per segment
MAX_ROUTE_SECONDS = 14400           # 4 hours: longest supported journey
CONTEXT_WINDOW_CHARS = 3000         # trailing story text passed as continuity context
WORDS_PER_MINUTE = 150              # narration pace used to size segment prompts
OUTLINE_TIMEOUT_MS = 60000          # outline generation budget
TEXT_TIMEOUT_MS = 60000             # segment text generation budget
AUDIO_TIMEOUT_MS = 100000           # segment audio synthesis budget
BACKGROUND_RETRY_BASE_DELAY = 2.0   # seconds: first backoff after a background failure
BACKGROUND_RETRY_MAX_DELAY = 30.0   # seconds: backoff ceiling
BACKGROUND_MAX_RETRIES = 3          # scheduled retries per segment index
FIRST_BEAT_FALLBACK = "Begin the journey."
BEAT_FALLBACK = "Continue the journey towards the final destination."
TRAVEL_MODES = ("WALKING", "DRIVING")
DEFAULT_TRAVEL_MODE = "WALKING"
DEFAULT_VOICE = "en-US-GuyNeural"
DEFAULT_STYLE = "NOIR"
TTS_RETRY_COUNT = 3                 # max attempts per synthesis call
TTS_RETRY_BASE_DELAY = 1.0          # seconds: base delay for exponential backoff
TTS_RATE = "+0%"                    # edge-tts relative speech rate
PAUSE_BETWEEN_SEGMENTS_MS = 700     # recap pause between segments
PLAYBACK_POLL_SECONDS = 0.25        # listener wait step while the buffer is empty
PLAYBACK_STALL_SECONDS = 600        # listener gives up after this long without audio
OUTPUT_BITRATE = "192k"
OUTPUT_FORMAT = "mp3"
OUTPUT_DIR = "output"
VERSION = "0.1.0"
