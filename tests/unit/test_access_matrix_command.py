import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

pytestmark = pytest.mark.unit


def _matrix(*args):
    out = StringIO()
    call_command("access_matrix", "--format", "json", *args, stdout=out)
    return json.loads(out.getvalue())


def test_json_matrix_covers_every_role_by_default():
    matrix = _matrix()

    assert set(matrix) == {"admin", "org_admin", "team_manager", "member", "anonymous"}
    assert matrix["admin"]["teams"]["delete"] is True
    assert matrix["admin"]["organizations"]["manage"] is False
    assert matrix["member"]["events"]["read"] is True
    assert matrix["member"]["events"]["update"] is False
    assert matrix["anonymous"]["events"]["read"] is False


def test_role_filter():
    matrix = _matrix("--role", "member", "--role", "anonymous")
    assert list(matrix) == ["member", "anonymous"]


def test_context_flags():
    matrix = _matrix("--public", "--owner", "--member-of")

    assert matrix["anonymous"]["events"]["read"] is True
    assert matrix["member"]["events"]["update"] is True
    assert matrix["org_admin"]["members"]["manage"] is True
    assert matrix["team_manager"]["fundraisers"]["create"] is True


def test_unknown_role_is_rejected():
    with pytest.raises(CommandError):
        call_command("access_matrix", "--role", "root", stdout=StringIO())


def test_table_output():
    out = StringIO()
    call_command("access_matrix", "--role", "member", stdout=out)
    output = out.getvalue()

    assert "member" in output
    assert "fundraisers" in output
    assert "allow" in output
