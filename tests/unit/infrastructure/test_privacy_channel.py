"""Unit tests for the privacy channel and auth contract handles."""

import pytest
from stellar_sdk import Keypair

from shieldpool.application.transaction_builder import TransactionBuilder
from shieldpool.application.utxo_account import UtxoBasedAccount
from shieldpool.domain.conditions import Condition
from shieldpool.domain.errors import InvalidContractIdError, PrivacyChannelUnexpectedError
from shieldpool.domain.operations import Operation
from shieldpool.domain.utxo_keypair import UTXOStatus
from shieldpool.env import Settings
from shieldpool.infrastructure.channel_auth import ChannelAuth
from shieldpool.infrastructure.privacy_channel import ChannelReadMethod, PrivacyChannel

from tests.fixtures import FakeContractClient
from tests.fixtures.constants import ASSET_ID, AUTH_ID, CHANNEL_ID, NETWORK, ROOT_SECRET


@pytest.fixture
def channel(channel_client: FakeContractClient) -> PrivacyChannel:
    return PrivacyChannel(channel_client, AUTH_ID, NETWORK)


class TestConstruction:
    def test_invalid_channel_id(self) -> None:
        with pytest.raises(InvalidContractIdError) as exc:
            PrivacyChannel(FakeContractClient("not-a-contract"), AUTH_ID, NETWORK)
        assert exc.value.code == "PCH_001"

    def test_invalid_auth_id(self, channel_client: FakeContractClient) -> None:
        with pytest.raises(InvalidContractIdError):
            PrivacyChannel(channel_client, Keypair.random().public_key, NETWORK)

    def test_from_settings(self, channel_client: FakeContractClient) -> None:
        settings = Settings(
            network_passphrase=NETWORK,
            channel_contract_id=CHANNEL_ID,
            auth_contract_id=AUTH_ID,
            asset_contract_id=ASSET_ID,
        )
        channel = PrivacyChannel.from_settings(settings, channel_client)
        assert channel.channel_id == CHANNEL_ID
        assert channel.auth_id == AUTH_ID
        assert channel.network_passphrase == NETWORK

    def test_derivator_context(self, channel: PrivacyChannel) -> None:
        derivator = channel.get_derivator()
        assert derivator.get_context() == f"{NETWORK}{CHANNEL_ID}"
        assert not derivator.is_set("root")


class TestReads:
    """Test balance reads through the injected client."""

    @pytest.mark.asyncio
    async def test_balance_fetcher(
        self, channel: PrivacyChannel, channel_client: FakeContractClient
    ) -> None:
        utxo = channel.get_derivator().with_root(ROOT_SECRET).derive_keypair(1).public_key
        channel_client.balances[utxo] = 77
        assert await channel.get_balance_fetcher().fetch_balance(utxo) == 77
        assert channel_client.calls[-1] == ("read", "utxo_balance", {"utxo": utxo})

    @pytest.mark.asyncio
    async def test_account_loads_through_channel(
        self, channel: PrivacyChannel, channel_client: FakeContractClient
    ) -> None:
        account = UtxoBasedAccount.from_privacy_channel(channel, ROOT_SECRET, batch_size=2)
        account.derive_batch(count=3)
        channel_client.balances[account.get_utxo(2).public_key] = 500
        await account.batch_load()
        assert account.get_utxo(2).status == UTXOStatus.UNSPENT
        assert account.get_utxo(1).status == UTXOStatus.FREE
        reads = [c for c in channel_client.calls if c[1] == ChannelReadMethod.UTXO_BALANCES.value]
        assert [len(c[2]["utxos"]) for c in reads] == [2, 1]

    @pytest.mark.asyncio
    async def test_client_failure_wrapped(
        self, channel: PrivacyChannel, channel_client: FakeContractClient
    ) -> None:
        channel_client.error = OSError("connection reset")
        with pytest.raises(PrivacyChannelUnexpectedError) as exc:
            await channel.read(ChannelReadMethod.SUPPLY)
        assert exc.value.code == "PCH_000"
        assert exc.value.data["method"] == "supply"


class TestTransact:
    """Test submitting a signed bundle."""

    @pytest.mark.asyncio
    async def test_transact(
        self,
        channel: PrivacyChannel,
        channel_client: FakeContractClient,
        builder: TransactionBuilder,
        provider: Keypair,
    ) -> None:
        derivator = channel.get_derivator().with_root(ROOT_SECRET)
        target = derivator.derive_keypair(5).public_key
        withdraw_to = Keypair.random().public_key
        deposit = Operation.deposit(provider.public_key, 10)
        deposit.add_condition(Condition.create(target, 10))
        builder.add_operations([Operation.create(target, 10), deposit, Operation.withdraw(withdraw_to, 1)])
        await builder.sign_ext_with_ed25519(provider, 100)
        await builder.sign_with_provider(provider, 100)

        result = await channel.transact(builder, {"fee": 100})

        assert result == {"status": "SUCCESS"}
        kind, method, args = channel_client.calls[-1]
        assert (kind, method) == ("invoke", "transact")
        assert "op" in args
        assert len(channel_client.last_auth_entries) == 2
        assert channel_client.last_config == {"fee": 100}

    @pytest.mark.asyncio
    async def test_builder_for_other_channel(self, channel: PrivacyChannel) -> None:
        other = TransactionBuilder(
            channel_id=AUTH_ID, auth_id=AUTH_ID, asset_id=ASSET_ID, network=NETWORK
        )
        with pytest.raises(InvalidContractIdError):
            await channel.transact(other)


class TestChannelAuth:
    @pytest.mark.asyncio
    async def test_is_provider(self) -> None:
        client = FakeContractClient(AUTH_ID)
        provider = Keypair.random().public_key
        client.providers.add(provider)
        auth = ChannelAuth(client)
        assert auth.auth_id == AUTH_ID
        assert await auth.is_provider(provider)
        assert not await auth.is_provider(Keypair.random().public_key)
