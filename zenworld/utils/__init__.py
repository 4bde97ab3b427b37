# zenworld utilities
from .logging import log, logWarning, logError, logDebug, init_logging, close_logging, print_summary, get_counts
from .binary import write_chunk, pack_floats, pack_vec3, encode_string
