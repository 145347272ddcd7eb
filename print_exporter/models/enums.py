from enum import Enum

class LayoutMode(Enum):
    CROP = "crop"   # center-crop to ratio, fill canvas
    FIT = "fit"     # keep aspect ratio, pad to size
    MAT = "mat"     # fit inside a uniform border

class ExportFormat(Enum):
    PNG = "png"
    JPEG = "jpeg"

class Orientation(Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"

class ExportState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RENDERING = "rendering"
    ARCHIVING = "archiving"
    DONE = "done"
    FAILED = "failed"

# PNG before JPEG, whatever order the user ticked them in
FORMAT_ORDER = (ExportFormat.PNG, ExportFormat.JPEG)

FORMAT_EXTENSIONS = {
    ExportFormat.PNG: "png",
    ExportFormat.JPEG: "jpg",
}

FORMAT_MIME_TYPES = {
    ExportFormat.PNG: "image/png",
    ExportFormat.JPEG: "image/jpeg",
}

MODE_SUFFIXES = {
    LayoutMode.CROP: "",
    LayoutMode.FIT: "_fit",
    LayoutMode.MAT: "_mat",
}
