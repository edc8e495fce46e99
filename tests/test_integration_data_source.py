"""Tests for the nango_integrations data source."""

import asyncio

from nango_provider import Integration, IntegrationCredentials, IntegrationDataSource


def _seed(fake_app, *keys):
    for key in keys:
        fake_app.state.integrations[key] = {
            "unique_key": key,
            "display_name": key.title(),
            "provider": key,
            "created_at": "2026-01-01T00:00:00.000Z",
            "updated_at": "2026-01-02T00:00:00.000Z",
            "webhook_url": None,
            "credentials": {"type": "OAUTH2", "client_id": "id", "client_secret": "s", "scopes": ""},
        }


def test_two_items_in_server_order_without_credentials(data_source, fake_app, recorder):
    _seed(fake_app, "slack", "github")

    resp = asyncio.run(data_source.read())

    assert not resp.diagnostics
    assert recorder.calls() == [("GET", "/integrations")]
    assert resp.state == [
        Integration("slack", "Slack", "slack", "2026-01-02T00:00:00.000Z", None),
        Integration("github", "Github", "github", "2026-01-02T00:00:00.000Z", None),
    ]


def test_empty_environment(data_source):
    resp = asyncio.run(data_source.read())
    assert resp.state == []
    assert not resp.diagnostics


def test_sees_integrations_created_through_the_resource(data_source, resource, github_plan):
    async def _run():
        await resource.create(github_plan)
        return await data_source.read()

    resp = asyncio.run(_run())
    assert [i.unique_key for i in resp.state] == ["gh1"]
    assert resp.state[0].credentials is None


def test_api_error(data_source, fake_app):
    fake_app.state.fail_next = [401]
    resp = asyncio.run(data_source.read())
    assert resp.state is None
    [diag] = resp.diagnostics.errors
    assert diag.summary == "Unable to Read Integrations"
    assert "HTTP 401" in diag.detail


def test_wrong_key_is_rejected(fake_app):
    import httpx
    from nango_provider import NangoClient

    source = IntegrationDataSource()
    source.configure(NangoClient(
        "http://nango.test", "wrong-key", transport=httpx.ASGITransport(app=fake_app),
    ))
    resp = asyncio.run(source.read())
    assert "HTTP 401" in resp.diagnostics.errors[0].detail


def test_undecodable_body(data_source, fake_app):
    fake_app.state.raw_body = b"<html>"
    resp = asyncio.run(data_source.read())
    assert resp.diagnostics.summaries() == ["Unable to Decode JSON"]


def test_missing_envelope_is_a_decode_error(data_source, fake_app):
    fake_app.state.raw_body = b'[{"unique_key": "a"}]'
    resp = asyncio.run(data_source.read())
    assert resp.diagnostics.summaries() == ["Unable to Decode JSON"]


def test_configure_rejects_foreign_objects():
    diags = IntegrationDataSource().configure(IntegrationCredentials("a", "b", "c"))
    assert diags.summaries() == ["Unexpected Data Source Configure Type"]


def test_metadata_and_schema():
    source = IntegrationDataSource()
    assert source.metadata("nango") == "nango_integrations"
    item = source.schema().attributes["integrations"].attributes
    assert all(attr.computed for attr in item.values())
    assert item["credentials"].attributes["client_secret"].sensitive
