
from dotenv import load_dotenv

# Load environment variables from .env as early as possible so the
# config getters (and anything reading os.environ at import-time) see
# the configured values.
load_dotenv()
