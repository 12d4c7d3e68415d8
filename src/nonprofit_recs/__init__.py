"""Nonprofit recommendation engine for crisis news articles."""

from dotenv import load_dotenv

# Load .env before ``config.load_settings`` or ``security`` read os.environ.
load_dotenv()
