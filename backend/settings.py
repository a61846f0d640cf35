import os

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or val.strip() == "":
        return default
    return float(val)


def _as_int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    return int(val)


class Settings:
    def __init__(self) -> None:
        self.FACE_MIN_CONFIDENCE: float = _as_float(os.getenv("FACE_MIN_CONFIDENCE"), 0.5)
        # 0 = short range (faces within ~2m), 1 = full range (group photos)
        self.FACE_MODEL_SELECTION: int = _as_int(os.getenv("FACE_MODEL_SELECTION"), 1)
        self.MEDIA_ROOT: str = os.getenv("MEDIA_ROOT", "media")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.CROP_WRITE_ARCHIVE: bool = _as_bool(os.getenv("CROP_WRITE_ARCHIVE"), False)


settings = Settings()
