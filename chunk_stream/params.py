"""
ParamType declarations.
"""

import json
import re

from click import ParamType
from humanfriendly import InvalidSize, parse_size


class Size(ParamType):
    """
    Size type for command-line parameters, e.g. "5 MiB" or "1048576".
    """

    name = "size"

    def convert(self, value, param, ctx):
        """
        Convert size string into number of bytes.
        """
        if isinstance(value, int):
            return value
        try:
            return parse_size(value, binary=True)
        except InvalidSize as e:
            self.fail(f'"{value}" is not a valid size: {str(e)}', param, ctx)


class JsonParamType(ParamType):
    """
    JsonParamType type for command-line parameter for JSON value.
    """

    name = "json"

    def convert(self, value, param, ctx):
        try:
            if re.fullmatch(
                r'\s*([\[{"].*|true|false|null|\d+(\.\d+)?)\s*',
                value,
                re.MULTILINE | re.DOTALL,
            ):
                return json.loads(value)
            return value.strip()
        except json.JSONDecodeError:
            self.fail(f'"{value}" is not a valid json value', param, ctx)
