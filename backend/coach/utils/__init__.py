from coach.utils.sse import format_sse, format_update_sse
from coach.utils.normalize import coerce_sets, normalize_reps, parse_json_array

__all__ = ["coerce_sets", "format_sse", "format_update_sse", "normalize_reps", "parse_json_array"]
