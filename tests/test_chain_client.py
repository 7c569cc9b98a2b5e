"""
Unit tests for the on-chain balance client.
"""

import pytest
from aiohttp import test_utils, web
from eth_utils import to_checksum_address
from web3.exceptions import ContractLogicError

from nft_wallet_checker.clients import chain as chain_module
from nft_wallet_checker.clients.chain import ChainBalanceClient
from nft_wallet_checker.exceptions import (
    InvalidAddressError,
    ProviderError,
    ProviderResponseError,
    ProviderTransportError,
    ServiceSetupError,
)

from .conftest import CONTRACT, WALLET_A


class FakeCall:
    def __init__(self, web3, owner):
        self.web3 = web3
        self.owner = owner

    async def call(self):
        self.web3.calls.append(self.owner)
        outcome = self.web3.outcomes.pop(0) if len(self.web3.outcomes) > 1 else self.web3.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeFunctions:
    def __init__(self, web3):
        self.web3 = web3

    def balanceOf(self, owner):
        return FakeCall(self.web3, owner)


class FakeContract:
    def __init__(self, web3):
        self.functions = FakeFunctions(web3)


class FakeEth:
    def __init__(self, web3):
        self.web3 = web3

    def contract(self, address, abi):
        self.web3.contracts.append(address)
        return FakeContract(self.web3)


class FakeWeb3:
    """Minimal AsyncWeb3 stand-in; the last outcome repeats forever"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.contracts = []
        self.eth = FakeEth(self)


def make_client(web3, max_retries=2):
    return ChainBalanceClient(rpc_url="https://rpc.example/key123", max_retries=max_retries, retry_delay=0, web3=web3)


class TestGetTokenBalance:
    """Tests for balanceOf reads and the retry budget."""

    async def test_returns_balance(self):
        web3 = FakeWeb3(3)

        balance = await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

        assert balance == 3
        assert len(web3.calls) == 1

    async def test_calls_with_checksum_addresses(self):
        web3 = FakeWeb3(0)

        await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

        assert web3.contracts == [to_checksum_address(CONTRACT)]
        assert web3.calls == [to_checksum_address(WALLET_A)]

    async def test_always_failing_call_makes_three_attempts(self):
        """
        Given an RPC that always fails
        When reading a balance with the default budget of two retries
        Then exactly three attempts are made before the error propagates
        """
        web3 = FakeWeb3(ConnectionError("connection reset"))

        with pytest.raises(ProviderTransportError):
            await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

        assert len(web3.calls) == 3

    async def test_recovers_within_retry_budget(self):
        web3 = FakeWeb3(ConnectionError("reset"), ConnectionError("reset"), 2)

        balance = await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

        assert balance == 2
        assert len(web3.calls) == 3

    async def test_zero_retries_means_single_attempt(self):
        web3 = FakeWeb3(ConnectionError("reset"))

        with pytest.raises(ProviderTransportError):
            await make_client(web3, max_retries=0).get_token_balance(WALLET_A, CONTRACT)

        assert len(web3.calls) == 1

    async def test_revert_is_response_error(self):
        web3 = FakeWeb3(ContractLogicError("execution reverted"))

        with pytest.raises(ProviderResponseError):
            await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

        assert len(web3.calls) == 3

    async def test_non_integer_result_is_response_error(self):
        web3 = FakeWeb3("lots")

        with pytest.raises(ProviderResponseError):
            await make_client(web3).get_token_balance(WALLET_A, CONTRACT)

    async def test_invalid_address_is_not_retried(self):
        web3 = FakeWeb3(1)

        with pytest.raises(InvalidAddressError):
            await make_client(web3).get_token_balance("not-an-address", CONTRACT)

        assert web3.calls == []

    async def test_error_messages_hide_rpc_url(self):
        web3 = FakeWeb3(ConnectionError("cannot reach https://rpc.example/key123"))

        with pytest.raises(ProviderTransportError) as exc_info:
            await make_client(web3, max_retries=0).get_token_balance(WALLET_A, CONTRACT)

        assert "key123" not in str(exc_info.value)


class TestSetup:
    """Tests for building the web3 client."""

    async def test_unreachable_endpoint_raises_setup_error(self, monkeypatch):
        """
        Given a node that does not answer
        When opening the client with connection verification
        Then ServiceSetupError is raised
        """

        class FakeProvider:
            def __init__(self, endpoint, request_kwargs=None):
                self.endpoint = endpoint

            async def disconnect(self):
                pass

        class OfflineWeb3:
            def __init__(self, provider):
                self.provider = provider

            async def is_connected(self):
                return False

        monkeypatch.setattr(chain_module, "AsyncHTTPProvider", FakeProvider)
        monkeypatch.setattr(chain_module, "AsyncWeb3", OfflineWeb3)
        client = ChainBalanceClient(rpc_url="https://rpc.example", verify_connection=True)

        with pytest.raises(ServiceSetupError):
            await client.open()

        assert client.web3 is None

    async def test_open_is_noop_with_injected_web3(self):
        web3 = FakeWeb3(1)
        client = make_client(web3)

        await client.open()
        await client.close()

        assert client.web3 is web3


class StubRpc:
    """Local JSON-RPC node; answers HTTP 500 to everything when no balance is set"""

    def __init__(self, balance=None):
        self.balance = balance
        self.methods = []

    async def handle(self, request):
        payload = await request.json()
        self.methods.append(payload.get("method"))
        if self.balance is None:
            return web.Response(status=500, text="node unavailable")
        results = {"eth_chainId": "0x1", "eth_call": "0x" + format(self.balance, "064x")}
        return web.json_response({
            "jsonrpc": "2.0",
            "id": payload.get("id"),
            "result": results.get(payload.get("method"), "0x1"),
        })


@pytest.fixture
async def start_rpc():
    servers = []

    async def start(stub):
        app = web.Application()
        app.router.add_post("/", stub.handle)
        server = test_utils.TestServer(app)
        await server.start_server()
        servers.append(server)
        return str(server.make_url("/"))

    yield start

    for server in servers:
        await server.close()


class TestAgainstJsonRpcNode:
    """Tests running the real web3 HTTP provider against a local node."""

    async def test_always_failing_node_gets_one_request_per_attempt(self, start_rpc):
        """
        Given a node that answers HTTP 500 to every request
        When reading a balance with the default budget of two retries
        Then exactly three requests reach the node
        """
        stub = StubRpc()
        client = ChainBalanceClient(rpc_url=await start_rpc(stub), retry_delay=0, verify_connection=False)

        try:
            with pytest.raises(ProviderError):
                await client.get_token_balance(WALLET_A, CONTRACT)
        finally:
            await client.close()

        assert len(stub.methods) == 3

    async def test_retry_budget_is_configurable(self, start_rpc):
        stub = StubRpc()
        client = ChainBalanceClient(
            rpc_url=await start_rpc(stub), max_retries=4, retry_delay=0, verify_connection=False
        )

        try:
            with pytest.raises(ProviderError):
                await client.get_token_balance(WALLET_A, CONTRACT)
        finally:
            await client.close()

        assert len(stub.methods) == 5

    async def test_decodes_balance_of_result(self, start_rpc):
        stub = StubRpc(balance=2)
        client = ChainBalanceClient(rpc_url=await start_rpc(stub), retry_delay=0, verify_connection=False)

        try:
            balance = await client.get_token_balance(WALLET_A, CONTRACT)
        finally:
            await client.close()

        assert balance == 2
        assert "eth_call" in stub.methods

    async def test_unreachable_node_fails_setup_after_one_request(self, start_rpc):
        stub = StubRpc()
        client = ChainBalanceClient(rpc_url=await start_rpc(stub), verify_connection=True)

        with pytest.raises(ServiceSetupError):
            await client.open()

        assert len(stub.methods) == 1
        assert client.web3 is None
