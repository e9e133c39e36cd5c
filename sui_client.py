"""
SuiKit - Sui Blockchain Client

Exposes Sui JSON-RPC methods as plain method calls. Every remote call goes
through SuiClient.call, which normalizes transport and protocol failures
into RpcFailure subclasses.

State-changing operations only prepare unsigned transactions. Signing is
left to an external wallet, so they return PENDING_TX_DIGEST.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional

import requests

log = logging.getLogger("suikit.sui")

SUI_COIN_TYPE = "0x2::sui::SUI"
SUI_DECIMALS = 9
DEFAULT_COIN_DECIMALS = 6

# Returned by state-changing calls until a wallet signs and submits the tx
PENDING_TX_DIGEST = "pending_wallet_signature"


class RpcFailure(Exception):
    """A remote call failed. Carries the RPC method and a readable message."""

    def __init__(self, method: str, message: str):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message


class TransportError(RpcFailure):
    """Connection failure or non-success HTTP status."""

    def __init__(self, method: str, message: str, status_code: Optional[int] = None):
        super().__init__(method, message)
        self.status_code = status_code


class ProtocolError(RpcFailure):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, method: str, message: str, code: Optional[int] = None):
        super().__init__(method, message)
        self.code = code


class ContractViolation(RpcFailure):
    """A successful response is missing a field the operation relies on."""

    def __init__(self, method: str, field: str):
        super().__init__(method, f"response is missing expected field '{field}'")
        self.field = field


@dataclass
class SuiTransaction:
    digest: str
    status: str
    gas_used: Optional[int] = None
    events: Optional[list] = None


class SuiClient:
    """Client for Sui JSON-RPC API interactions."""

    def __init__(
        self,
        rpc_url: str,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        if not rpc_url:
            raise ValueError("rpc_url is required")
        self._rpc_url = rpc_url
        self.timeout = timeout
        self.session = session or requests.Session()
        # Unsigned tx bytes are kept per thread so callers sharing a client
        # only ever see the transaction they prepared themselves
        self._local = threading.local()
        self._req_id = 0
        self._id_lock = threading.Lock()
        self._metadata_cache: dict[str, dict] = {}
        self._metadata_lock = threading.Lock()

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    @property
    def last_unsigned_tx(self) -> Optional[str]:
        """txBytes of the last transaction prepared by the calling thread."""
        return getattr(self._local, "unsigned_tx", None)

    def _next_id(self) -> int:
        with self._id_lock:
            self._req_id += 1
            return self._req_id

    def _fail(self, error: RpcFailure) -> RpcFailure:
        log.error(f"{error.method} failed: {error.message}")
        return error

    def _expect_dict(self, method: str, result: Any, field: str) -> dict:
        """The result as a mapping; anything else means `field` cannot be present."""
        if result is None:
            return {}
        if not isinstance(result, dict):
            raise self._fail(ContractViolation(method, field))
        return result

    def _expect_int(self, method: str, source: dict, field: str, label: Optional[str] = None) -> int:
        """Integer value of `source[field]`. Missing, null, or non-numeric values are violations."""
        value = source.get(field)
        if value is None or isinstance(value, bool):
            raise self._fail(ContractViolation(method, label or field))
        try:
            return int(value)
        except (TypeError, ValueError):
            raise self._fail(ContractViolation(method, label or field)) from None

    def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Send one JSON-RPC request and return its `result`.

        Raises TransportError, ProtocolError. A response carrying neither
        `result` nor `error` yields None.
        """
        if not method:
            raise ValueError("method must be a non-empty string")
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": list(params) if params is not None else [],
        }
        log.debug(f"-> {method} id={payload['id']}")

        try:
            resp = self.session.post(self._rpc_url, json=payload, timeout=self.timeout)
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise self._fail(TransportError(method, f"HTTP {status}: {e}", status_code=status))
        except requests.RequestException as e:
            raise self._fail(TransportError(method, str(e)))

        try:
            body = resp.json()
        except ValueError:
            raise self._fail(ProtocolError(method, "response body is not valid JSON"))
        if not isinstance(body, dict):
            raise self._fail(ProtocolError(method, "response body is not a JSON object"))

        if "error" in body:
            error = body["error"]
            code = None
            if isinstance(error, dict):
                message = error.get("message") or "unknown error"
                code = error.get("code")
            else:
                message = str(error) if error else "unknown error"
            raise self._fail(ProtocolError(method, message, code=code))

        return body.get("result")

    # ---- balances & coins ----

    def get_raw_balance(self, address: str, coin_type: str = SUI_COIN_TYPE) -> int:
        method = "suix_getBalance"
        result = self._expect_dict(method, self.call(method, [address, coin_type]), "totalBalance")
        return self._expect_int(method, result, "totalBalance")

    def get_balance(self, address: str, coin_type: str = SUI_COIN_TYPE) -> float:
        """Balance of `coin_type` held by `address`, scaled by the coin's decimals."""
        raw = self.get_raw_balance(address, coin_type)
        return raw / 10 ** self.get_decimals(coin_type)

    def get_all_balances(self, address: str) -> list:
        return self.call("suix_getAllBalances", [address]) or []

    def get_coin_metadata(self, coin_type: str) -> dict:
        """Coin metadata, fetched once per coin type and kept for the client's lifetime."""
        with self._metadata_lock:
            if coin_type not in self._metadata_cache:
                self._metadata_cache[coin_type] = (
                    self.call("suix_getCoinMetadata", [coin_type]) or {}
                )
            return self._metadata_cache[coin_type]

    def get_decimals(self, coin_type: str) -> int:
        if coin_type == SUI_COIN_TYPE:
            return SUI_DECIMALS
        decimals = self.get_coin_metadata(coin_type).get("decimals")
        return int(decimals) if decimals is not None else DEFAULT_COIN_DECIMALS

    def get_coins(
        self,
        owner: str,
        coin_type: str = SUI_COIN_TYPE,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> dict:
        return self.call("suix_getCoins", [owner, coin_type, cursor, limit]) or {}

    # ---- objects, transactions, checkpoints, events ----

    def get_object(self, object_id: str, options: Optional[dict] = None) -> dict:
        return self.call("sui_getObject", [
            object_id,
            options or {"showContent": True, "showType": True, "showOwner": True},
        ]) or {}

    def multi_get_objects(self, object_ids: list[str], options: Optional[dict] = None) -> list:
        return self.call("sui_multiGetObjects", [
            object_ids,
            options or {"showContent": True, "showType": True, "showOwner": True},
        ]) or []

    def get_owned_objects(
        self,
        owner: str,
        query: Optional[dict] = None,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> dict:
        return self.call("suix_getOwnedObjects", [owner, query, cursor, limit]) or {}

    def get_transaction(self, digest: str, options: Optional[dict] = None) -> dict:
        return self.call("sui_getTransactionBlock", [
            digest,
            options or {"showInput": True, "showEffects": True, "showEvents": True},
        ]) or {}

    def query_transactions(
        self,
        query: dict,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        descending: bool = False,
    ) -> dict:
        return self.call("suix_queryTransactionBlocks", [query, cursor, limit, descending]) or {}

    def get_checkpoint(self, checkpoint_id: str | int) -> dict:
        return self.call("sui_getCheckpoint", [str(checkpoint_id)]) or {}

    def get_latest_checkpoint(self) -> int:
        method = "sui_getLatestCheckpointSequenceNumber"
        result = self.call(method, [])
        if result is None:
            raise self._fail(ContractViolation(method, "result"))
        return int(result)

    def query_events(
        self,
        query: dict,
        cursor: Optional[dict] = None,
        limit: Optional[int] = None,
        descending: bool = False,
    ) -> dict:
        return self.call("suix_queryEvents", [query, cursor, limit, descending]) or {}

    # ---- staking & validators ----

    def get_stakes(self, owner: str) -> list:
        return self.call("suix_getStakes", [owner]) or []

    def get_validators_apy(self) -> dict:
        return self.call("suix_getValidatorsApy", []) or {}

    def get_validator_apy(self, validator: str) -> Optional[float]:
        """APY of a single validator, or None when the node does not list it."""
        for entry in self.get_validators_apy().get("apys", []):
            if entry.get("address") == validator:
                return float(entry["apy"])
        return None

    def get_reference_gas_price(self) -> int:
        method = "suix_getReferenceGasPrice"
        result = self.call(method, [])
        if result is None:
            raise self._fail(ContractViolation(method, "result"))
        return int(result)

    # ---- gas ----

    def estimate_gas(self, sender: str, transactions: list) -> int:
        """Dry-run `transactions` for `sender`; returns computationCost + storageCost."""
        method = "sui_dryRunTransactionBlock"
        result = self._expect_dict(method, self.call(method, [sender, transactions]), "effects")
        effects = self._expect_dict(method, result.get("effects") or result, "effects")
        gas_used = effects.get("gasUsed")
        if not isinstance(gas_used, dict):
            raise self._fail(ContractViolation(method, "gasUsed"))
        computation = self._expect_int(method, gas_used, "computationCost", "gasUsed.computationCost")
        storage = self._expect_int(method, gas_used, "storageCost", "gasUsed.storageCost")
        return computation + storage

    # ---- state-changing operations ----

    def _prepare(
        self,
        builder: str,
        sender: str,
        transactions: list,
        build_params: Callable[[str], list],
        gas_budget: Optional[int],
    ) -> str:
        """
        Build an unsigned transaction with one of the node's unsafe_* builders.

        `build_params` receives the gas budget as a string and returns the
        builder's positional arguments. The budget is estimated by dry-run
        when not supplied.
        """
        if gas_budget is None:
            gas_budget = self.estimate_gas(sender, transactions)
        result = self._expect_dict(builder, self.call(builder, build_params(str(gas_budget))), "txBytes")
        if not result.get("txBytes"):
            raise self._fail(ContractViolation(builder, "txBytes"))
        self._local.unsigned_tx = result["txBytes"]
        log.info(f"Prepared {builder} for {sender} (gas_budget={gas_budget}), awaiting wallet signature")
        return PENDING_TX_DIGEST

    def move_call(
        self,
        sender: str,
        package: str,
        module: str,
        function: str,
        type_arguments: Optional[list] = None,
        arguments: Optional[list] = None,
        gas: Optional[str] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        type_arguments = type_arguments or []
        arguments = arguments or []
        transactions = [{
            "kind": "moveCall",
            "target": f"{package}::{module}::{function}",
            "typeArguments": type_arguments,
            "arguments": arguments,
        }]
        return self._prepare(
            "unsafe_moveCall",
            sender,
            transactions,
            lambda budget: [sender, package, module, function, type_arguments, arguments, gas, budget],
            gas_budget,
        )

    def create_token(
        self,
        sender: str,
        package: str,
        name: str,
        symbol: str,
        decimals: int,
        description: str = "",
        icon_url: str = "",
        module: str = "token",
        function: str = "create",
        gas_budget: Optional[int] = None,
    ) -> str:
        """Call the token package's constructor. Argument order follows its Move signature."""
        return self.move_call(
            sender, package, module, function,
            arguments=[name, symbol, decimals, description, icon_url],
            gas_budget=gas_budget,
        )

    def mint_nft(
        self,
        sender: str,
        package: str,
        name: str,
        description: str,
        url: str,
        module: str = "nft",
        function: str = "mint",
        gas_budget: Optional[int] = None,
    ) -> str:
        return self.move_call(
            sender, package, module, function,
            arguments=[name, description, url],
            gas_budget=gas_budget,
        )

    def transfer_object(
        self,
        sender: str,
        object_id: str,
        recipient: str,
        gas: Optional[str] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        transactions = [{"kind": "transferObject", "objectId": object_id, "recipient": recipient}]
        return self._prepare(
            "unsafe_transferObject",
            sender,
            transactions,
            lambda budget: [sender, object_id, gas, budget, recipient],
            gas_budget,
        )

    def transfer_sui(
        self,
        sender: str,
        coin_object_id: str,
        recipient: str,
        amount: Optional[int] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        transactions = [{
            "kind": "transferSui",
            "objectId": coin_object_id,
            "recipient": recipient,
            "amount": amount,
        }]
        return self._prepare(
            "unsafe_transferSui",
            sender,
            transactions,
            lambda budget: [
                sender,
                coin_object_id,
                budget,
                recipient,
                str(amount) if amount is not None else None,
            ],
            gas_budget,
        )

    def split_coin(
        self,
        sender: str,
        coin_object_id: str,
        split_amounts: list[int],
        gas: Optional[str] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        amounts = [str(a) for a in split_amounts]
        transactions = [{"kind": "splitCoin", "objectId": coin_object_id, "amounts": amounts}]
        return self._prepare(
            "unsafe_splitCoin",
            sender,
            transactions,
            lambda budget: [sender, coin_object_id, amounts, gas, budget],
            gas_budget,
        )

    def stake(
        self,
        sender: str,
        coins: list[str],
        validator: str,
        amount: Optional[int] = None,
        gas: Optional[str] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        transactions = [{
            "kind": "requestAddStake",
            "coins": coins,
            "amount": amount,
            "validator": validator,
        }]
        return self._prepare(
            "unsafe_requestAddStake",
            sender,
            transactions,
            lambda budget: [
                sender, coins, str(amount) if amount is not None else None, validator, gas, budget,
            ],
            gas_budget,
        )

    def withdraw_stake(
        self,
        sender: str,
        staked_sui: str,
        gas: Optional[str] = None,
        gas_budget: Optional[int] = None,
    ) -> str:
        transactions = [{"kind": "requestWithdrawStake", "stakedSui": staked_sui}]
        return self._prepare(
            "unsafe_requestWithdrawStake",
            sender,
            transactions,
            lambda budget: [sender, staked_sui, gas, budget],
            gas_budget,
        )

    def execute_signed_transaction(
        self,
        tx_bytes: str,
        signatures: list[str],
        options: Optional[dict] = None,
        request_type: str = "WaitForLocalExecution",
    ) -> SuiTransaction:
        """Forward a transaction the wallet has already signed."""
        method = "sui_executeTransactionBlock"
        result = self._expect_dict(method, self.call(method, [
            tx_bytes,
            signatures,
            options or {"showEffects": True, "showEvents": True},
            request_type,
        ]), "digest")
        if not result.get("digest"):
            raise self._fail(ContractViolation(method, "digest"))
        effects = self._expect_dict(method, result.get("effects"), "effects")
        gas_used = effects.get("gasUsed")
        status = effects.get("status")
        return SuiTransaction(
            digest=result["digest"],
            status=status.get("status", "unknown") if isinstance(status, dict) else "unknown",
            gas_used=(
                self._expect_int(method, gas_used, "computationCost", "gasUsed.computationCost")
                if isinstance(gas_used, dict) and "computationCost" in gas_used else None
            ),
            events=result.get("events", []),
        )

    def health_check(self) -> bool:
        try:
            self.get_latest_checkpoint()
            return True
        except RpcFailure:
            return False
