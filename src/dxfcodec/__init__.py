from .config import CodecConfig
from .const import (
    DXF_COLOR_BYBLOCK,
    DXF_COLOR_BYLAYER,
    DXF_DEFAULT_LAYER,
    DXF_DEFAULT_LINETYPE,
    DXF_DEFAULT_LINETYPE_SCALE,
    DXF_DEFAULT_VISIBILITY,
    DXF_MODELSPACE,
    DXF_PAPERSPACE,
    Revision,
)
from .document import Block, Drawing, Header, Layout, SaveResult, Table, Thumbnail, load, loads, read
from .entity import AppData, Entity, new_donut, new_entity
from .errors import (
    Diagnostic,
    DXFError,
    InvalidEntity,
    MalformedToken,
    OutOfRange,
    RecordError,
    TruncatedEntity,
    TypeMismatch,
    UnsupportedByVersion,
)
from .handle import Handle
from .interop import from_ezdxf, to_ezdxf

__all__ = [
    "read",
    "load",
    "loads",
    "Drawing",
    "Layout",
    "Entity",
    "AppData",
    "Block",
    "Table",
    "Header",
    "Thumbnail",
    "Handle",
    "Revision",
    "CodecConfig",
    "SaveResult",
    "new_entity",
    "new_donut",
    "to_ezdxf",
    "from_ezdxf",
    "Diagnostic",
    "DXFError",
    "MalformedToken",
    "TruncatedEntity",
    "RecordError",
    "TypeMismatch",
    "OutOfRange",
    "UnsupportedByVersion",
    "InvalidEntity",
    "DXF_COLOR_BYLAYER",
    "DXF_COLOR_BYBLOCK",
    "DXF_MODELSPACE",
    "DXF_PAPERSPACE",
    "DXF_DEFAULT_LAYER",
    "DXF_DEFAULT_LINETYPE",
    "DXF_DEFAULT_LINETYPE_SCALE",
    "DXF_DEFAULT_VISIBILITY",
]
