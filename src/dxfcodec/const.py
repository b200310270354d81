from __future__ import annotations

from enum import IntEnum

DXF_COLOR_BYLAYER = 256
DXF_COLOR_BYBLOCK = 0
DXF_MODELSPACE = 0
DXF_PAPERSPACE = 1
DXF_DEFAULT_LAYER = "0"
DXF_DEFAULT_LINETYPE = "BYLAYER"
DXF_DEFAULT_LINETYPE_SCALE = 1.0
DXF_DEFAULT_VISIBILITY = 0
DXF_DEFAULT_TEXT_STYLE = "STANDARD"
DXF_DEFAULT_EXTRUSION = (0.0, 0.0, 1.0)

BINARY_CHUNK_HEX_CHARS = 254

SECTION_ORDER = (
    "HEADER",
    "CLASSES",
    "TABLES",
    "BLOCKS",
    "ENTITIES",
    "OBJECTS",
    "THUMBNAILIMAGE",
)

TABLE_ORDER = (
    "VPORT",
    "LTYPE",
    "LAYER",
    "STYLE",
    "VIEW",
    "UCS",
    "APPID",
    "DIMSTYLE",
    "BLOCK_RECORD",
)


class Revision(IntEnum):
    R10 = 1
    R11 = 2
    R12 = 3
    R13 = 4
    R14 = 5
    R2000 = 6
    R2000i = 7
    R2002 = 8
    R2004 = 9
    R2005 = 10
    R2006 = 11
    R2007 = 12
    R2008 = 13
    R2009 = 14
    R2010 = 15
    R2011 = 16
    R2012 = 17
    R2013 = 18
    R2014 = 19

    @property
    def acadver(self) -> str:
        return _ACADVER[self]

    @classmethod
    def from_acadver(cls, value: str) -> "Revision":
        code = value.strip().upper()
        matches = [revision for revision in cls if _ACADVER[revision] == code]
        if not matches:
            raise ValueError(f"unsupported DXF version: {value}")
        return max(matches)

    @classmethod
    def parse(cls, value: "str | Revision") -> "Revision":
        if isinstance(value, Revision):
            return value
        text = str(value).strip()
        for revision in cls:
            if revision.name.upper() == text.upper():
                return revision
        return cls.from_acadver(text)

    def __str__(self) -> str:
        return self.name


_ACADVER = {
    Revision.R10: "AC1006",
    Revision.R11: "AC1009",
    Revision.R12: "AC1009",
    Revision.R13: "AC1012",
    Revision.R14: "AC1014",
    Revision.R2000: "AC1015",
    Revision.R2000i: "AC1015",
    Revision.R2002: "AC1015",
    Revision.R2004: "AC1018",
    Revision.R2005: "AC1018",
    Revision.R2006: "AC1018",
    Revision.R2007: "AC1021",
    Revision.R2008: "AC1021",
    Revision.R2009: "AC1021",
    Revision.R2010: "AC1024",
    Revision.R2011: "AC1024",
    Revision.R2012: "AC1024",
    Revision.R2013: "AC1027",
    Revision.R2014: "AC1027",
}

# Headerless streams are the classic R12 "ENTITIES only" files.
DEFAULT_SOURCE_REVISION = Revision.R12
