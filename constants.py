import os
import string

HOST = os.getenv("HOST", "0.0.0.0")
RELAY_PORT = int(os.getenv("RELAY_PORT", 8080))
REGISTRY_PORT = int(os.getenv("REGISTRY_PORT", 8081))

WORLDS_FILE = os.getenv("WORLDS_FILE", "worlds.json")

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits

MIN_SEED = 0
MAX_SEED = 2147483647
