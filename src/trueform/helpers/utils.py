import json
import sys
from typing import Any, Optional


def load_json_data(json_str: Optional[str] = None, json_file: Optional[str] = None) -> Any:
    """
    Load JSON data from a string or file.

    Args:
        json_str (str): JSON string input.
        json_file (str): Path to a JSON file, or "-" to read standard input.

    Returns:
        Any: Parsed JSON data as a Python object.

    Raises:
        ValueError: If neither `json_str` nor `json_file` is provided.
    """
    if json_str:
        return json.loads(json_str)

    if json_file == "-":
        return json.load(sys.stdin)

    if json_file:
        with open(json_file, "r") as f:
            return json.load(f)

    raise ValueError("Either `json_str` or `json_file` must be provided.")
