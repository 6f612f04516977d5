from __future__ import annotations

from dataclasses import replace
from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from src.claims_system.claims_system.claims.model import Claim
from src.claims_system.claims_system.users.model import User


class FakeClaimsRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Claim] = {}
        # Ids whose next update should lose a race (row bumped or row deleted underneath).
        self.conflict_on_update: set[int] = set()
        self.vanish_on_update: set[int] = set()

    def create_claim(
        self,
        *,
        submitter_identity,
        hours_worked,
        hourly_rate,
        total_amount,
        status,
        submitted_date,
        document_type,
        original_file_name,
        stored_file_reference,
        notes,
    ):
        cid = self._next_id
        self._next_id += 1
        self.rows[cid] = Claim(
            claim_id=cid,
            submitter_identity=submitter_identity,
            hours_worked=hours_worked,
            hourly_rate=hourly_rate,
            total_amount=total_amount,
            status=status,
            submitted_date=submitted_date,
            document_type=document_type,
            original_file_name=original_file_name,
            stored_file_reference=stored_file_reference,
            notes=notes,
        )
        return cid

    def get_by_id(self, claim_id):
        return self.rows.get(int(claim_id))

    def exists(self, claim_id):
        return int(claim_id) in self.rows

    def list_by_submitter(self, submitter_identity):
        return [c for c in self.rows.values() if c.submitter_identity == submitter_identity]

    def list_by_statuses(self, statuses):
        wanted = set(statuses)
        return [c for c in self.rows.values() if c.status in wanted]

    def update_claim(self, claim, *, expected_version):
        cid = claim.claim_id
        if cid in self.vanish_on_update:
            self.vanish_on_update.discard(cid)
            self.rows.pop(cid, None)
        if cid in self.conflict_on_update and cid in self.rows:
            self.conflict_on_update.discard(cid)
            stored = self.rows[cid]
            self.rows[cid] = replace(stored, row_version=stored.row_version + 1)

        stored = self.rows.get(cid)
        if not stored or stored.row_version != expected_version:
            return False
        self.rows[cid] = replace(claim, row_version=expected_version + 1)
        return True

    def delete_by_id(self, claim_id):
        return self.rows.pop(int(claim_id), None) is not None


class FakeAttachmentStore:
    def __init__(self):
        self.blobs: dict[str, bytes] = {}

    def save(self, stream, stored_name):
        self.blobs[stored_name] = stream.read()
        return f"/images/{stored_name}"


class FakeUsersRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, User] = {}

    def add(self, email, password="secret123", *, first_name="Test", last_name="User", is_active=True):
        uid = self._next_id
        self._next_id += 1
        self.rows[uid] = User(
            user_id=uid,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=generate_password_hash(password),
            is_active=is_active,
        )
        return uid

    def get_by_id(self, user_id):
        return self.rows.get(int(user_id))

    def get_by_email(self, email):
        for u in self.rows.values():
            if u.email == email:
                return u
        return None

    def create_user(self, *, first_name, last_name, email, password_hash):
        uid = self._next_id
        self._next_id += 1
        self.rows[uid] = User(
            user_id=uid,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=password_hash,
        )
        return uid

    def list_all(self):
        return list(self.rows.values())


class FakeRolesRepo:
    def __init__(self, names=("Lecturer", "Manager", "Coordinator", "Administrator")):
        self.names: list[str] = list(names)
        self.grants: dict[int, set[str]] = {}

    def list_names(self):
        return list(self.names)

    def exists(self, name):
        return name in self.names

    def create(self, name):
        self.names.append(name)
        return len(self.names)

    def roles_for_user(self, user_id):
        return sorted(self.grants.get(int(user_id), set()))

    def roles_by_user(self):
        return {uid: sorted(names) for uid, names in self.grants.items() if names}

    def assign(self, *, user_id, name):
        held = self.grants.setdefault(int(user_id), set())
        if name in held:
            return False
        held.add(name)
        return True

    def revoke(self, *, user_id, name):
        held = self.grants.get(int(user_id), set())
        if name not in held:
            return False
        held.discard(name)
        return True


@pytest.fixture
def claims_repo():
    return FakeClaimsRepo()


@pytest.fixture
def attachments():
    return FakeAttachmentStore()


@pytest.fixture
def users_repo():
    return FakeUsersRepo()


@pytest.fixture
def roles_repo():
    return FakeRolesRepo()


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 2, 9, 30, 0)
