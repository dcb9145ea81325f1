"""
Dismissal store lokal: set ID violation yang disembunyikan guru
"""
import json
import os
import re
from typing import Set

from shared.errors import PersistenceError

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class JsonDismissalStore:
    """
    Simpan set ID violation yang di-dismiss ke file JSON per guru

    Hanya lokal; tidak disinkronkan antar device.
    """

    def __init__(self, teacher_id: str, base_dir: str = "data/dismissed"):
        """
        Args:
            teacher_id: ID guru pemilik set
            base_dir: Direktori file dismissal
        """
        self.teacher_id = teacher_id
        self.base_dir = base_dir
        self.path = os.path.join(base_dir, f"dismissed_{_SAFE_KEY.sub('_', str(teacher_id))}.json")

    def load(self) -> Set[str]:
        """
        Load set dismissal; file belum ada berarti set kosong

        Raises:
            PersistenceError: jika file tidak bisa dibaca atau isinya rusak
        """
        if not os.path.exists(self.path):
            return set()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read dismissal store {self.path}: {e}") from e

        ids = data.get('dismissed') if isinstance(data, dict) else None
        if not isinstance(ids, list):
            raise PersistenceError(f"Malformed dismissal store {self.path}")
        return {str(violation_id) for violation_id in ids}

    def save(self, violation_ids: Set[str]):
        """
        Tulis seluruh set dismissal (atomic replace)

        Raises:
            PersistenceError: jika file tidak bisa ditulis
        """
        payload = {
            'teacher_id': self.teacher_id,
            'dismissed': sorted(violation_ids)
        }
        tmp_path = f"{self.path}.tmp"
        try:
            os.makedirs(self.base_dir, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Cannot write dismissal store {self.path}: {e}") from e


class MemoryDismissalStore:
    """Dismissal store in-memory, untuk embedding dan test"""

    def __init__(self, initial: Set[str] = None):
        self._ids = set(initial or ())

    def load(self) -> Set[str]:
        return set(self._ids)

    def save(self, violation_ids: Set[str]):
        self._ids = set(violation_ids)
