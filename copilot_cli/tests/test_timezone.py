from copilot_cli.config import timezone


def test_iana_names_pass_through():
    assert timezone.to_iana_time_zone("Europe/Berlin") == "Europe/Berlin"
    assert timezone.to_iana_time_zone("UTC") == "UTC"


def test_windows_names_are_mapped():
    assert timezone.to_iana_time_zone("Pacific Standard Time") == "America/Los_Angeles"
    assert timezone.to_iana_time_zone("China Standard Time") == "Asia/Shanghai"
    assert timezone.to_iana_time_zone("Romance Standard Time") == "Europe/Paris"


def test_unknown_zone_is_passed_through_unchanged():
    assert timezone.to_iana_time_zone("Mars Standard Time") == "Mars Standard Time"


def test_resolve_prefers_override(monkeypatch):
    monkeypatch.setattr(timezone.tzlocal, "get_localzone_name", lambda: "Asia/Tokyo")
    assert timezone.resolve_time_zone("Eastern Standard Time") == "America/New_York"
    assert timezone.resolve_time_zone() == "Asia/Tokyo"


def test_local_zone_falls_back_to_utc(monkeypatch):
    def broken():
        raise LookupError("no zone")

    monkeypatch.setattr(timezone.tzlocal, "get_localzone_name", broken)
    assert timezone.local_zone_name() == "UTC"
