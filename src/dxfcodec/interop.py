from __future__ import annotations

import io
from typing import Any

from .config import CodecConfig
from .const import Revision
from .document import Drawing, loads


def to_ezdxf(drawing: Drawing, revision: Revision | str | None = None) -> Any:
    """Encode ``drawing`` and read it back as an ``ezdxf`` document."""
    ezdxf = _require_ezdxf()
    target = Revision.parse(revision) if revision is not None else drawing.revision
    data = drawing.to_bytes(target)
    encoding = "utf-8" if target >= Revision.R2007 else "cp1252"
    return ezdxf.read(io.StringIO(data.decode(encoding)))


def from_ezdxf(doc: Any, config: CodecConfig | None = None) -> Drawing:
    """Serialize an ``ezdxf`` document and load it as a :class:`Drawing`."""
    _require_ezdxf()
    stream = io.StringIO()
    doc.write(stream)
    return loads(stream.getvalue(), config)


def _require_ezdxf():
    try:
        import ezdxf
    except Exception as exc:
        raise ImportError(
            "ezdxf is required for the ezdxf bridge. "
            'Install it with `pip install "dxfcodec[dxf]"`.'
        ) from exc
    return ezdxf


__all__ = ["to_ezdxf", "from_ezdxf"]
