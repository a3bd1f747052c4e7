from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import pytest

from nova_compute.compute.args import ServerQuery
from nova_compute.compute.client import Compute
from nova_compute.compute.exceptions import MalformedResponse, ServiceNotFound, TransportError
from nova_compute.compute.identity import CatalogIdentity
from nova_compute.compute.server import Server


@pytest.fixture
def compute(endpoint, transport):
    return Compute("tok", endpoint, transport=transport)


def _query(url):
    return parse_qs(urlsplit(url).query, keep_blank_values=True)


class TestConstruction:
    def test_accessors(self, endpoint, transport):
        c = Compute("tok", endpoint + "/", transport=transport)
        assert c.token == "tok"
        assert c.url() == endpoint
        assert c.endpoint == endpoint
        assert c.standard_headers() == {"X-Auth-Token": "tok"}

    def test_from_identity_first_match(self, transport):
        identity = CatalogIdentity(
            [
                {
                    "name": "nova",
                    "type": "compute",
                    "endpoints": [
                        {"region": "az-1", "publicURL": "https://az1/v2/t"},
                        {"region": "az-2", "publicURL": "https://az2/v2/t"},
                    ],
                }
            ],
            "issued-token",
        )
        c = Compute.from_identity(identity, transport=transport)
        assert c.url() == "https://az1/v2/t"
        assert c.token == "issued-token"

        c2 = Compute.from_identity(identity, "az-2", transport=transport)
        assert c2.url() == "https://az2/v2/t"

    def test_from_identity_unknown_region(self, transport):
        identity = CatalogIdentity(
            [{"type": "compute", "endpoints": [{"region": "az-1", "publicURL": "https://az1"}]}],
            "tok",
        )
        with pytest.raises(ServiceNotFound):
            Compute.from_identity(identity, "nowhere", transport=transport)


class TestServers:
    @pytest.mark.asyncio
    async def test_end_to_end_listing(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {
            "servers": [{"id": "abc", "name": "web1", "status": "ACTIVE", "flavor": {"id": "2"}}]
        }

        servers = await compute.servers()

        assert len(servers) == 1
        s = servers[0]
        assert isinstance(s, Server)
        assert s.id == "abc"
        assert s.name == "web1"
        assert s.flavor_id == "2"
        assert s.url == endpoint + "/servers/abc"
        assert s.token == "tok"
        assert s.original["endpoint"] == endpoint

        method, url, headers = transport.calls[0]
        assert method == "GET"
        assert url == f"{endpoint}/servers/detail?format=json"
        assert headers == {"X-Auth-Token": "tok"}

    @pytest.mark.asyncio
    async def test_keeps_response_order(self, compute, endpoint, transport):
        ids = ["z", "a", "m"]
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": [{"id": i} for i in ids]}
        assert [s.id for s in await compute.servers()] == ids

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "limit,marker,expected",
        [
            (None, None, {"format": ["json"]}),
            (5, None, {"format": ["json"], "limit": ["5"]}),
            (None, "abc", {"format": ["json"], "marker": ["abc"]}),
            (5, "abc", {"format": ["json"], "limit": ["5"], "marker": ["abc"]}),
        ],
    )
    async def test_query_contains_only_supplied_params(self, compute, endpoint, transport, limit, marker, expected):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": []}
        await compute.servers(limit=limit, marker=marker)
        assert _query(transport.calls[0][1]) == expected

    @pytest.mark.asyncio
    async def test_marker_is_percent_encoded(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": []}
        await compute.servers(ServerQuery(marker="a b&c/d"))
        url = transport.calls[0][1]
        assert "marker=a%20b%26c%2Fd" in url
        assert _query(url)["marker"] == ["a b&c/d"]

    @pytest.mark.asyncio
    async def test_query_and_keywords_are_exclusive(self, compute):
        with pytest.raises(TypeError):
            await compute.servers(ServerQuery(limit=1), marker="x")

    @pytest.mark.asyncio
    async def test_transport_failure_builds_nothing(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = TransportError("boom", status=500)
        with pytest.raises(TransportError) as ei:
            await compute.servers()
        assert ei.value.status == 500

    @pytest.mark.asyncio
    async def test_malformed_body(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = b"not json"
        with pytest.raises(MalformedResponse):
            await compute.servers()

    @pytest.mark.asyncio
    async def test_missing_servers_key(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"flavors": []}
        with pytest.raises(MalformedResponse):
            await compute.servers()

    @pytest.mark.asyncio
    async def test_wrong_shape_metadata_in_listing(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": [{"id": "abc", "metadata": ["a"]}]}
        with pytest.raises(MalformedResponse):
            await compute.servers()

    @pytest.mark.asyncio
    async def test_servers_share_transport_for_metadata(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": [{"id": "abc"}]}
        transport.routes[f"{endpoint}/servers/abc/metadata"] = {"metadata": {"k": "v"}}

        (s,) = await compute.servers()
        assert await s.list_metadata() == {"k": "v"}
        assert transport.calls[-1][2] == {"X-Auth-Token": "tok"}


class TestServersWithCallback:
    @pytest.mark.asyncio
    async def test_limit_and_marker_positional(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": [{"id": "abc"}]}
        outcomes = []

        task = compute.servers_with_callback(5, "abc", lambda err, res: outcomes.append((err, res)))
        await task

        assert len(outcomes) == 1
        err, servers = outcomes[0]
        assert err is None
        assert [s.id for s in servers] == ["abc"]
        q = _query(transport.calls[0][1])
        assert q["limit"] == ["5"]
        assert q["marker"] == ["abc"]

    @pytest.mark.asyncio
    async def test_callback_only(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/servers/detail"] = {"servers": []}
        outcomes = []

        await compute.servers_with_callback(lambda err, res: outcomes.append((err, res)))

        assert outcomes == [(None, [])]
        assert _query(transport.calls[0][1]) == {"format": ["json"]}

    @pytest.mark.asyncio
    async def test_error_reported_once(self, compute):
        outcomes = []

        await compute.servers_with_callback(10, lambda err, res: outcomes.append((err, res)))

        assert len(outcomes) == 1
        err, res = outcomes[0]
        assert isinstance(err, TransportError)
        assert res is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", ["5", -1])
    async def test_rejected_limit_reported_to_callback(self, compute, transport, limit):
        outcomes = []

        await compute.servers_with_callback(limit, lambda err, res: outcomes.append((err, res)))

        assert len(outcomes) == 1
        err, res = outcomes[0]
        assert isinstance(err, (TypeError, ValueError))
        assert res is None
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_requires_callback(self, compute):
        with pytest.raises(TypeError):
            compute.servers_with_callback(5, "abc")


class TestFlavors:
    @pytest.mark.asyncio
    async def test_flavors_passthrough(self, compute, endpoint, transport):
        records = [{"id": "1", "name": "m1.tiny", "ram": 512}, {"id": "2", "name": "m1.small", "ram": 2048}]
        transport.routes[f"{endpoint}/flavors/detail"] = {"flavors": records}

        assert await compute.flavors() == records
        assert transport.calls[0][1] == f"{endpoint}/flavors/detail?format=json"

    @pytest.mark.asyncio
    async def test_flavor_by_id(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/flavors/m1.small"] = {"flavor": {"id": "m1.small", "ram": 512}}

        assert await compute.flavor("m1.small") == {"id": "m1.small", "ram": 512}
        assert transport.calls[0][1] == f"{endpoint}/flavors/m1.small?format=json"

    @pytest.mark.asyncio
    async def test_flavor_id_is_path_encoded(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/flavors/a%2Fb"] = {"flavor": {"id": "a/b"}}
        assert await compute.flavor("a/b") == {"id": "a/b"}

    @pytest.mark.asyncio
    async def test_flavor_not_found(self, compute):
        with pytest.raises(TransportError) as ei:
            await compute.flavor("missing")
        assert ei.value.status == 404

    @pytest.mark.asyncio
    async def test_flavor_wrong_shape(self, compute, endpoint, transport):
        transport.routes[f"{endpoint}/flavors/x"] = {"flavor": ["x"]}
        with pytest.raises(MalformedResponse):
            await compute.flavor("x")
