import sys
from typing import Union

from erlang_term_json.decoder import DEFAULT_MAX_DEPTH
from erlang_term_json.utils import check_endpoint_url

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def check_max_depth(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"{value} is not a valid max_depth, expected a positive integer")
    return value


def check_input(value: str) -> str:
    if not isinstance(value, str) or value == "":
        raise ValueError(f"{value} is not a valid input")
    return value


CONFIG_PARAMETERS = {
    "max_depth": {"type": check_max_depth, "default": DEFAULT_MAX_DEPTH},
    "s3_endpoint": {"type": check_endpoint_url, "default": None},
    "input": {"type": check_input, "default": None},
}


def read_config(config_filename: Union[str, None] = None) -> dict:
    config_data = {}
    if config_filename:
        with open(config_filename, "rb") as file_handle:
            config_data = tomllib.load(file_handle)
    for param in config_data:
        if param not in CONFIG_PARAMETERS:
            raise ValueError(f"{param} is not a known parameter")
    config = {}
    for param, param_config in CONFIG_PARAMETERS.items():
        if param in config_data:
            param_type = param_config["type"]
            config[param] = param_type(config_data[param])  # type: ignore
        else:
            config[param] = param_config["default"]
    return config
