from types import SimpleNamespace

import pytest

from cloudvault import crud
from cloudvault.core.errors import Forbidden, QuotaExceeded
from cloudvault.services import access, quota


class TestQuota:
    def test_scenario_e(self):
        with pytest.raises(QuotaExceeded):
            quota.ensure_capacity(quota_bytes=100, used_bytes=60, additional_bytes=41)
        assert quota.ensure_capacity(quota_bytes=100, used_bytes=60, additional_bytes=40) == 40

    def test_replacement_counts_only_growth(self):
        assert quota.replacement_increase(100, 150) == 50
        assert quota.replacement_increase(100, 40) == 0

    def test_check_quota_reads_user_directory(self, db, make_user):
        make_user("u1", quota_bytes=1000, used_bytes=900)
        assert quota.check_quota(db, owner_id="u1", additional_bytes=100) == 100
        with pytest.raises(QuotaExceeded):
            quota.check_quota(db, owner_id="u1", additional_bytes=101)

    def test_usage_is_lifetime_writes(self, db, make_user):
        make_user("u1", quota_bytes=1000)
        quota.record_usage(db, owner_id="u1", admitted_bytes=300)
        quota.record_usage(db, owner_id="u1", admitted_bytes=0)
        assert crud.user.get(db, "u1").used_bytes == 300


class TestAccess:
    def setup_method(self):
        self.private = SimpleNamespace(owner_id="u1", visibility="private")
        self.public = SimpleNamespace(owner_id="u1", visibility="public")

    def test_owner_reads_and_writes(self):
        assert access.can_read(self.private, "u1")
        assert access.can_write(self.private, "u1")

    def test_public_is_read_only_for_others(self):
        assert access.can_read(self.public, "u2")
        assert not access.can_write(self.public, "u2")

    def test_private_is_closed_to_others(self):
        assert not access.can_read(self.private, "u2")
        with pytest.raises(Forbidden):
            access.require_read(self.private, "u2")
        with pytest.raises(Forbidden):
            access.require_write(self.public, "u2")
