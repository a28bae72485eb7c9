"""
Local folder storage for uploaded resumes
"""
import os
import re
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, List

from resume_scanner.utils.logging_config import get_logger

logger = get_logger(__name__)


def clean_file_name(name: str) -> str:
    name = re.sub(r"[^a-z0-9\-]", "-", name.lower())
    name = re.sub(r"-+", "-", name)
    return name.strip("-")


def make_unique_file_name(file_name: str) -> str:
    """``My CV.PDF`` -> ``my-cv-<32 hex chars>.pdf``"""
    base = os.path.basename(file_name or "")
    stem, ext = os.path.splitext(base)
    return f"{clean_file_name(stem)}-{uuid.uuid4().hex}{ext.lower()}"


class LocalStorage:
    """Flat folder of resume files. File names are always reduced to their basename."""

    def ensure_folder(self, folder_path: str) -> None:
        Path(folder_path).mkdir(parents=True, exist_ok=True)

    def resolve(self, folder_path: str, file_name: str) -> Path:
        return Path(folder_path) / os.path.basename(file_name or "")

    def save_file(self, folder_path: str, file_name: str, content: BinaryIO) -> Path:
        self.ensure_folder(folder_path)
        path = self.resolve(folder_path, file_name)
        with open(path, "wb") as fh:
            shutil.copyfileobj(content, fh)
        logger.info(f"Saved resume file {path}")
        return path

    def list_files(self, folder_path: str) -> List[str]:
        folder = Path(folder_path)
        if not folder.is_dir():
            return []
        return sorted(str(p) for p in folder.iterdir() if p.is_file())

    def list_file_names(self, folder_path: str) -> List[str]:
        return [os.path.basename(p) for p in self.list_files(folder_path)]

    def delete_file_if_exists(self, folder_path: str, file_name: str) -> bool:
        if not file_name or not file_name.strip():
            raise ValueError("Filename is required.")
        if not Path(folder_path).is_dir():
            return False
        path = self.resolve(folder_path, file_name)
        if not path.is_file():
            return False
        path.unlink()
        logger.info(f"Deleted resume file {path}")
        return True
