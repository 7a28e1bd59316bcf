"""Order and inventory backend for a small storefront."""
from dotenv import load_dotenv

__version__ = "0.1.0"

# DATABASE_URL, SECRET_KEY and friends may live in a local .env
load_dotenv()
