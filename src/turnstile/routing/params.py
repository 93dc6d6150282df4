"""Path parameter converters for binding pattern segments like ``{id:int}``.

Captured values stay strings; the converter only decides whether a
segment matches.
"""


# (regex_pattern, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}
