"""
The Solana node as seen by the automation host.

`SolanaOperationsNode.execute` runs the per-item loop: resolve the item's
parameters, build the request, dispatch it and collect one output record per
item, honouring the host's continue-on-fail setting.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .chain.base_client import ChainClient
from .chain.solana_client import SolanaChainClient
from .config import CREDENTIALS_NAME, NodeSettings
from .credentials import SolanaCredentials
from .description import NodeDescription, get_node_description
from .dispatcher import OperationDispatcher, RunContext
from .errors import NodeConfigurationError, NodeOperationError
from .operations import Operation, build_request
from .results import OutputRecord, error_record, success_record
from .wallets.base_signer import BaseSigner
from .wallets.keypair_signer import KeypairSigner

logger = logging.getLogger(__name__)

ChainClientFactory = Callable[[str], ChainClient]


class ExecutionContext(ABC):
    """
    What the node needs from the host while executing.
    """

    @abstractmethod
    def get_input_data(self) -> Sequence[Dict[str, Any]]:
        pass

    @abstractmethod
    def get_node_parameter(self, name: str, item_index: int) -> Any:
        pass

    @abstractmethod
    def get_credentials(self, name: str) -> Optional[Mapping[str, Any]]:
        pass

    @abstractmethod
    def continue_on_fail(self) -> bool:
        pass


class StaticExecutionContext(ExecutionContext):
    """
    In-memory execution context.

    Each item is a dict of parameter values; `parameters` holds node-level
    values shared by all items (e.g. the operation). Item values win over
    node-level values, which win over the declared defaults.
    """

    def __init__(
        self,
        items: Sequence[Dict[str, Any]],
        parameters: Optional[Dict[str, Any]] = None,
        credentials: Optional[Dict[str, Mapping[str, Any]]] = None,
        continue_on_fail: bool = False,
        description: Optional[NodeDescription] = None,
    ):
        self.items = list(items)
        self.parameters = dict(parameters or {})
        self.credentials = dict(credentials or {})
        self._continue_on_fail = continue_on_fail
        self.description = description or get_node_description()

    def get_input_data(self) -> Sequence[Dict[str, Any]]:
        return self.items

    def get_node_parameter(self, name: str, item_index: int) -> Any:
        item = self.items[item_index] if item_index < len(self.items) else {}
        if name in item:
            value = item[name]
        elif name in self.parameters:
            value = self.parameters[name]
        elif name == "operation":
            return self.description.default_operation
        else:
            return self.description.get_default(name)
        return self._coerce(name, value)

    def _coerce(self, name: str, value: Any) -> Any:
        prop = self.description.get_parameter(name)
        if prop is None or not isinstance(value, str):
            return value
        if prop["type"] == "boolean":
            return value.strip().lower() in ("true", "1", "yes", "on")
        if prop["type"] == "number":
            try:
                return float(value)
            except ValueError:
                return value
        return value

    def get_credentials(self, name: str) -> Optional[Mapping[str, Any]]:
        return self.credentials.get(name)

    def continue_on_fail(self) -> bool:
        return self._continue_on_fail


class SolanaOperationsNode:
    """
    Runs the selected Solana operation for every input item.

    Args:
        settings: Node constants (donation address, stake account size...).
        client_factory: Opens the chain client for an RPC URL.
        signer_factory: Decodes the private key into a signer.
    """

    def __init__(
        self,
        settings: Optional[NodeSettings] = None,
        client_factory: Optional[ChainClientFactory] = None,
        signer_factory: Optional[Callable[[str], BaseSigner]] = None,
    ):
        self.settings = settings or NodeSettings()
        self.client_factory = client_factory or SolanaChainClient
        self.signer_factory = signer_factory or KeypairSigner.from_secret

    def _open_context(self, context: ExecutionContext) -> RunContext:
        credentials = SolanaCredentials.from_mapping(context.get_credentials(CREDENTIALS_NAME))
        signer = self.signer_factory(credentials.private_key)
        client = self.client_factory(credentials.rpc_url)
        return RunContext(signer=signer, client=client, settings=self.settings)

    def execute(self, context: ExecutionContext) -> List[OutputRecord]:
        items = context.get_input_data()
        try:
            run_context = self._open_context(context)
        except NodeConfigurationError as e:
            logger.error(f"Solana node configuration error: {e}")
            raise

        dispatcher = OperationDispatcher(run_context)
        return_data: List[OutputRecord] = []
        logger.info(f"Running Solana node on {len(items)} item(s)")
        try:
            for item_index in range(len(items)):
                try:
                    return_data.append(self._run_item(context, dispatcher, item_index))
                except Exception as e:
                    if context.continue_on_fail():
                        logger.warning(f"Item {item_index} failed: {e}")
                        return_data.append(error_record(str(e), item_index))
                    else:
                        logger.error(f"Aborting run at item {item_index}: {e}")
                        raise NodeOperationError(str(e), item_index=item_index) from e
        finally:
            run_context.client.close()
        return return_data

    def _run_item(self, context: ExecutionContext, dispatcher: OperationDispatcher, item_index: int) -> OutputRecord:
        operation = Operation.parse(context.get_node_parameter("operation", item_index))
        request = build_request(
            operation,
            lambda name: context.get_node_parameter(name, item_index),
            own_address=dispatcher.signer.get_address(),
        )
        fields = dispatcher.dispatch(request)
        return success_record(operation, item_index, **fields)
