"""Runtime settings, read from the environment (optionally via a .env file)."""
import os

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_LEVEL = os.getenv("PSP_ROUTER_LOG_LEVEL", "INFO").upper()

DEFAULT_STRATEGY = os.getenv("PSP_ROUTER_DEFAULT_STRATEGY", "approval_optimized")
REPORT_SIZE = int(os.getenv("PSP_ROUTER_REPORT_SIZE", 210))
DATA_SEED = int(os.getenv("PSP_ROUTER_DATA_SEED", 42))
OUTPUT_DIR = os.getenv("PSP_ROUTER_OUTPUT_DIR", "output")

HOST = os.getenv("PSP_ROUTER_HOST", "0.0.0.0")
PORT = int(os.getenv("PSP_ROUTER_PORT", 8000))
