import pytest

from tagit.systemd import UnitFields, render_unit

FLAGS = {
    "service-id": "web-1",
    "script": "/opt/probe.sh",
    "tag-prefix": "role",
    "interval": "5s",
    "user": "tagit",
    "group": "tagit",
}


def test_render_unit():
    unit = render_unit(UnitFields.from_flags(FLAGS))
    assert "Description=Tagit web-1" in unit
    assert "ExecStart=/usr/bin/tagit run -s web-1 -x /opt/probe.sh -p role -i 5s\n" in unit
    assert "Environment=HOME=/var/run/tagit/web-1" in unit
    assert "User=tagit\nGroup=tagit" in unit
    assert "Restart=always" in unit
    assert "WantedBy=multi-user.target" in unit


def test_optional_flags_are_appended():
    unit = render_unit(UnitFields.from_flags({**FLAGS, "token": "abc", "consul-addr": "10.0.0.1:8500"}))
    assert "-i 5s -t abc -c 10.0.0.1:8500\n" in unit


def test_script_with_arguments_is_quoted():
    unit = render_unit(UnitFields.from_flags({**FLAGS, "script": "/opt/probe.sh --fast"}))
    assert "-x '/opt/probe.sh --fast'" in unit


def test_missing_fields_are_all_reported():
    with pytest.raises(ValueError) as exc:
        UnitFields.from_flags({"service-id": "web-1", "script": None})
    assert str(exc.value) == "missing required fields: script, tag_prefix, interval, user, group"
