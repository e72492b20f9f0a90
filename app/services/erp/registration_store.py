"""Local record of gate-outs registered through this service."""

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List

from app.schemas.erp import RegisteredContainer

logger = logging.getLogger(__name__)


class RegistrationStoreError(Exception):
    """The backing file exists but cannot be read as a list of registrations."""


def new_registration(user_id: int, container_data: Dict[str, Any], gate_out_data: Dict[str, Any]) -> RegisteredContainer:
    return RegisteredContainer(
        id=f"{int(time.time() * 1000)}-{user_id}-{uuid.uuid4().hex[:9]}",
        user_id=user_id,
        container_data=container_data,
        gate_out_data=gate_out_data,
        registered_at=datetime.utcnow(),
    )


class RegistrationStore(ABC):
    @abstractmethod
    def add(self, user_id: int, container_data: Dict[str, Any], gate_out_data: Dict[str, Any]) -> RegisteredContainer:
        pass

    @abstractmethod
    def list_all(self) -> List[RegisteredContainer]:
        pass

    @abstractmethod
    def delete(self, registration_id: str) -> bool:
        pass

    def list_by_user(self, user_id: int) -> List[RegisteredContainer]:
        return [record for record in self.list_all() if record.user_id == user_id]


class InMemoryRegistrationStore(RegistrationStore):
    """Process-local store; records are lost on restart."""

    def __init__(self):
        self._records: List[RegisteredContainer] = []

    def add(self, user_id: int, container_data: Dict[str, Any], gate_out_data: Dict[str, Any]) -> RegisteredContainer:
        record = new_registration(user_id, container_data, gate_out_data)
        self._records.append(record)
        logger.info(f"Registered container saved for user {user_id}")
        return record

    def list_all(self) -> List[RegisteredContainer]:
        return list(self._records)

    def delete(self, registration_id: str) -> bool:
        remaining = [record for record in self._records if record.id != registration_id]
        deleted = len(remaining) < len(self._records)
        self._records = remaining
        return deleted


class JsonFileRegistrationStore(RegistrationStore):
    """Keeps registrations in a JSON array file, rewritten on every change."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> List[RegisteredContainer]:
        """Load every record. Raises RegistrationStoreError when the file is unreadable.

        Writers call this first, so a damaged file is never overwritten.
        """
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
            # pydantic's ValidationError is a ValueError
            return [RegisteredContainer.model_validate(item) for item in raw]
        except (OSError, ValueError) as e:
            logger.error(f"Error reading registration store {self.path}: {e}")
            raise RegistrationStoreError(f"Registration store {self.path} is unreadable: {e}") from e

    def _write(self, records: List[RegisteredContainer]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [record.model_dump(mode="json") for record in records]
        self.path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    def add(self, user_id: int, container_data: Dict[str, Any], gate_out_data: Dict[str, Any]) -> RegisteredContainer:
        records = self._read()
        record = new_registration(user_id, container_data, gate_out_data)
        records.append(record)
        self._write(records)
        logger.info(f"Registered container saved for user {user_id} in {self.path}")
        return record

    def list_all(self) -> List[RegisteredContainer]:
        return self._read()

    def delete(self, registration_id: str) -> bool:
        records = self._read()
        remaining = [record for record in records if record.id != registration_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        return True
