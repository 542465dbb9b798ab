# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Mission:
    """A single to-do item scoped to one calendar date and one owning user."""

    id: str
    user_id: str
    title: str
    completed: bool = False
    date: datetime = field(default_factory=_utcnow)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class AuthUser:
    """The signed-in user as reported by the identity provider."""

    uid: str
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.email or self.uid
