from __future__ import annotations

import copy
from datetime import UTC, datetime, timedelta

import pytest

from event_facade import Config, Facade, FixedClock, Track

NOW = datetime(2026, 2, 14, 10, 0, tzinfo=UTC)


class TestOptions:
    def _msg(self) -> Facade:
        return Facade(
            {
                "context": {"Salesforce": {"object": "Account"}},
                "integrations": {"Salesforce": True},
            }
        )

    def test_returns_the_settings_object(self):
        assert self._msg().options("Salesforce") == {"object": "Account"}

    def test_always_returns_an_object(self):
        msg = Facade({"integrations": {"Salesforce": True}})
        assert msg.options("Salesforce") == {}

    def test_case_insensitive_lookup(self):
        assert self._msg().options("salesforce") == {"object": "Account"}

    def test_deprecated_providers(self):
        msg = Facade(
            {
                "context": {
                    "providers": {"Salesforce": True},
                    "Salesforce": {
                        "object": "Lead",
                        "lookup": {"email": "peter@initech.com"},
                    },
                }
            }
        )
        assert msg.options("salesforce") == {
            "object": "Lead",
            "lookup": {"email": "peter@initech.com"},
        }


class TestContext:
    def test_legacy_options_for_backwards_compatibility(self):
        options = {"a": "b"}
        facade = Facade({"options": options})
        assert facade.context() == options
        assert facade.options() == options

    def test_pulls_from_context(self):
        context = {"a": "b"}
        assert Facade({"context": context}).context() is context

    def test_empty_without_context(self):
        assert Facade({}).context() == {}

    def test_nothing_when_all_integrations_are_disabled(self):
        facade = Facade({"context": {"all": False}})
        assert facade.context("Customer.io") is None

    def test_nothing_for_disabled_by_default_integrations(self):
        facade = Facade({})
        assert facade.context("Salesforce") is None
        assert facade.context("Customer.io") == {}

    def test_specifically_enabled_integration(self):
        facade = Facade({"context": {"all": False, "Customer.io": True}})
        assert facade.context("Customer.io") == {}
        assert facade.context("HelpScout") is None
        assert facade.context("HubSpot") is None

        facade = Facade({"context": {"all": False, "Customer.io": {"setting": True}}})
        assert facade.context("Customer.io") == {"setting": True}
        assert facade.context("HelpScout") is None

        facade = Facade({"integrations": {"HubSpot": {"x": 1}}})
        assert facade.context("hub_spot") == {"x": 1}

        facade = Facade({"context": {"providers": {"HubSpot": {"x": 1}}}})
        assert facade.context("hub_spot") == {"x": 1}

    def test_enabled_disabled_by_default_integration(self):
        facade = Facade({"context": {"HubSpot": {"setting": "x"}}})
        assert facade.context("HubSpot") == {"setting": "x"}
        assert facade.context("Customer.io") == {}
        assert facade.context("Salesforce") is None

    def test_case_insensitive(self):
        facade = Facade({"context": {"Intercom": {"x": "y"}}})
        assert facade.context("intercom") == {"x": "y"}
        assert facade.context("Intercom") == {"x": "y"}

    @pytest.mark.parametrize(
        "obj",
        [
            {},
            {"context": {"all": False}},
            {"context": {"all": False, "Customer.io": {"x": 1}}},
            {"integrations": {"Customer.io": False, "Salesforce": {"a": 1}}},
            {"context": {"providers": {"all": False, "Salesforce": True}}},
        ],
    )
    def test_context_agrees_with_enabled(self, obj):
        facade = Facade(obj)
        for name in ("Customer.io", "Salesforce", "HubSpot"):
            if facade.enabled(name):
                assert facade.context(name) == facade.integration_resolver().options_for(name)
            else:
                assert facade.context(name) is None


class TestEnabled:
    def test_enabled_by_default(self):
        assert Facade({}).enabled("Customer.io") is True

    def test_not_enabled_when_all_is_false(self):
        assert Facade({"context": {"all": False}}).enabled("Customer.io") is False

    def test_override_all_false(self):
        facade = Facade({"context": {"all": False, "Customer.io": {"x": 1}}})
        assert facade.enabled("Customer.io") is True

    def test_override_all_true(self):
        facade = Facade({"context": {"all": True, "Customer.io": False}})
        assert facade.enabled("Customer.io") is False

    def test_providers_all(self):
        facade = Facade({"context": {"providers": {"all": False, "Customer.io": True}}})
        assert facade.enabled("Customer.io") is True
        assert facade.enabled("Google Analytics") is False

    def test_disabled_integrations_only_when_explicitly_enabled(self):
        assert Facade({}).enabled("Salesforce") is False
        assert Facade({"context": {"Salesforce": {"x": 1}}}).enabled("Salesforce") is True

    def test_old_providers_api(self):
        facade = Facade({"context": {"providers": {"Customer.io": False, "Salesforce": True}}})
        assert facade.enabled("Customer.io") is False
        assert facade.enabled("Salesforce") is True

    def test_integrations(self):
        facade = Facade({"integrations": {"Customer.io": False, "Salesforce": True}})
        assert facade.enabled("Customer.io") is False
        assert facade.enabled("Salesforce") is True

    def test_integrations_all(self):
        assert Facade({"integrations": {"all": False}}).enabled("Customer.io") is False

    def test_spelling_insensitive(self):
        facade = Facade({"integrations": {"Customer.io": False}})
        assert facade.enabled("Customer.io") == facade.enabled("customer_io") is False

    def test_registry_comes_from_config(self):
        facade = Facade({}, config=Config(disabled_by_default=("HubSpot",)))
        assert facade.enabled("Salesforce") is True
        assert facade.enabled("hub_spot") is False

    def test_enablement_reports_the_deciding_layer(self):
        decision = Facade({"integrations": {"Salesforce": True}}).enablement("salesforce")
        assert decision.enabled is True
        assert decision.explicit is True
        assert decision.source == "integrations"


def test_integrations_returns_the_raw_map():
    integrations = {"Salesforce": True}
    assert Facade({"integrations": integrations}).integrations() is integrations
    assert Facade({}).integrations() == {}


class TestActive:
    def test_active_by_default(self):
        assert Facade({}).active() is True

    def test_active_when_enabled(self):
        assert Facade({"context": {"active": True}}).active() is True

    def test_inactive_when_disabled(self):
        assert Facade({"context": {"active": False}}).active() is False


class TestIdentity:
    def test_group_id(self):
        assert Facade({"context": {"groupId": "groupId"}}).group_id() == "groupId"

    def test_channel(self):
        assert Facade({"channel": "english"}).channel() == "english"

    def test_timezone(self):
        facade = Facade({"context": {"timezone": "America/New_York"}})
        assert facade.timezone() == "America/New_York"

    def test_user_agent(self):
        assert Facade({"context": {"userAgent": "safari"}}).user_agent() == "safari"

    def test_ip(self):
        assert Facade({"context": {"ip": "4.8.15.16"}}).ip() == "4.8.15.16"

    def test_anonymous_id_falls_back_to_session_id(self):
        assert Facade({"anonymousId": "anon"}).anonymous_id() == "anon"
        assert Facade({"sessionId": "sess"}).anonymous_id() == "sess"
        assert Facade({"sessionId": "sess"}).session_id() == "sess"

    def test_user_id(self):
        assert Facade({"userId": "u1"}).user_id() == "u1"


class TestTraits:
    def test_proxies_traits(self):
        traits = {"someVal": 1}
        assert Facade({"context": {"traits": traits}}).traits() == traits

    def test_empty_without_traits(self):
        assert Facade({}).traits() == {}

    def test_mixes_in_id(self):
        assert Facade({"userId": 123}).traits() == {"id": 123}

    def test_respects_aliases(self):
        facade = Facade({"context": {"traits": {"a": "b", "c": "c", "email": "a@b.com"}}})
        assert facade.traits({"a": "b", "email": "$email"}) == {
            "$email": "a@b.com",
            "b": "b",
            "c": "c",
        }

    def test_aliases_read_the_original_values(self):
        facade = Facade({"context": {"traits": {"a": 1, "b": 2}}})
        assert facade.traits({"a": "b", "b": "c"}) == {"b": 1, "c": 2}

    def test_missing_aliases_are_skipped(self):
        facade = Facade({"context": {"traits": {"a": 1}}})
        assert facade.traits({"missing": "m"}) == {"a": 1}

    def test_does_not_mutate_the_tree(self):
        obj = {"userId": 7, "context": {"traits": {"a": "b"}}}
        snapshot = copy.deepcopy(obj)
        Facade(obj).traits({"a": "z"})
        assert obj == snapshot


class TestTimestamp:
    def test_current_time_when_missing(self):
        assert Facade({}, clock=FixedClock(NOW)).timestamp() == NOW

    def test_current_time_is_read_at_call_time(self):
        class Ticking:
            def __init__(self) -> None:
                self.moment = NOW

            def now(self) -> datetime:
                self.moment += timedelta(seconds=1)
                return self.moment

        facade = Facade({}, clock=Ticking())
        assert facade.timestamp() < facade.timestamp()

    def test_specified_timestamp(self):
        timestamp = datetime(2026, 1, 1, tzinfo=UTC)
        facade = Facade({"timestamp": timestamp}, clock=FixedClock(NOW))
        assert facade.timestamp() == timestamp
        assert facade.timestamp() != NOW

    def test_casts_strings(self):
        assert Facade({"timestamp": "5/12/2015"}).timestamp() == datetime(2015, 5, 12, tzinfo=UTC)

    def test_casts_milliseconds(self):
        millis = int(NOW.timestamp() * 1000)
        assert Facade({"timestamp": millis}).timestamp() == NOW


class TestLibrary:
    def test_unknown_when_missing(self):
        assert Facade({}).library() == {"name": "unknown", "version": None}

    def test_string_library(self):
        facade = Facade({"options": {"library": "analytics-node"}})
        assert facade.library() == {"name": "analytics-node", "version": None}

    def test_object_library(self):
        facade = Facade({"options": {"library": {"name": "analytics-node", "version": 1.0}}})
        assert facade.library() == {"name": "analytics-node", "version": 1.0}

    def test_object_library_defaults_version(self):
        facade = Facade({"context": {"library": {"name": "analytics.js"}}})
        assert facade.library() == {"name": "analytics.js", "version": None}


class TestDevice:
    def test_returns_the_device(self):
        facade = Facade({"context": {"device": {"token": "token"}}})
        assert facade.device() == {"token": "token"}

    def test_leaves_existing_device_types_untouched(self):
        facade = Facade(
            {"context": {"library": {"name": "analytics-ios"}, "device": {"type": "browser"}}}
        )
        assert facade.device()["type"] == "browser"

    def test_infers_ios(self):
        facade = Facade({"context": {"library": {"name": "analytics-ios"}}})
        assert facade.device()["type"] == "ios"

    def test_infers_android(self):
        facade = Facade({"context": {"library": {"name": "analytics-android"}}})
        assert facade.device()["type"] == "android"

    @pytest.mark.parametrize(
        ("library", "expected"),
        [("analytics-ios-swift", "ios"), ("Analytics-Android-Kotlin", "android"), ("analytics.js", None)],
    )
    def test_infers_from_names_containing_the_platform(self, library, expected):
        facade = Facade({"context": {"library": {"name": library}}})
        assert facade.device().get("type") == expected

    def test_inference_does_not_touch_the_tree(self):
        device = {"token": "t"}
        facade = Facade({"context": {"device": device, "library": {"name": "analytics-ios"}}})
        assert facade.device() == {"token": "t", "type": "ios"}
        assert device == {"token": "t"}


class TestAddress:
    @pytest.mark.parametrize("name", ["city", "country", "state", "region", "street", "zip"])
    def test_from_traits_address(self, name):
        msg = Facade({"context": {"traits": {"address": {name: name}}}})
        assert getattr(msg, name)() == name

    @pytest.mark.parametrize("name", ["city", "country", "state", "region", "street", "zip"])
    def test_from_traits(self, name):
        msg = Facade({"context": {"traits": {name: name}}})
        assert getattr(msg, name)() == name

    def test_address_wins_over_flat_traits(self):
        msg = Facade({"context": {"traits": {"city": "flat", "address": {"city": "nested"}}}})
        assert msg.city() == "nested"

    def test_zip_from_address_postal_code(self):
        msg = Facade({"context": {"traits": {"address": {"postalCode": "postalCode"}}}})
        assert msg.zip() == "postalCode"

    def test_zip_from_postal_code(self):
        msg = Facade({"context": {"traits": {"postalCode": "postalCode"}}})
        assert msg.zip() == "postalCode"

    def test_zip_before_postal_code(self):
        msg = Facade({"context": {"traits": {"postalCode": "p", "zip": "z"}}})
        assert msg.zip() == "z"

    def test_missing(self):
        assert Facade({}).city() is None


class TestJson:
    def test_full_object(self):
        obj = {"a": "b", "c": "d", "x": [1, 2, 3], "timestamp": datetime(1979, 1, 1)}
        facade = Facade(obj)
        assert facade.json() == obj
        assert facade.json() is not obj

    def test_adds_type(self):
        assert Track({}).json()["type"] == "track"

    def test_copy_is_deep(self):
        obj = {"context": {"traits": {"a": 1}}}
        copied = Facade(obj).json()
        copied["context"]["traits"]["a"] = 2
        assert obj["context"]["traits"]["a"] == 1


def test_accessors_are_idempotent():
    obj = {
        "userId": "u1",
        "timestamp": "2026-02-14T10:00:00Z",
        "context": {
            "traits": {"email": "a@b.com", "address": {"city": "Berlin"}},
            "library": {"name": "analytics-ios"},
            "providers": {"HubSpot": {"x": 1}},
        },
    }
    facade = Facade(obj)
    for accessor in ("traits", "library", "device", "city", "timestamp", "json", "context"):
        assert getattr(facade, accessor)() == getattr(facade, accessor)()
    assert facade.context("hub_spot") == facade.context("hub_spot") == {"x": 1}


def test_rejects_non_mapping_payloads():
    with pytest.raises(TypeError, match="Facade wraps a mapping, got list"):
        Facade([])  # type: ignore[arg-type]
