"""
Top-level package for bank-processing.

Environment variables are loaded from the nearest `.env` so that ``BANK_*``
settings and provider endpoints are available on import.
"""
from dotenv import find_dotenv, load_dotenv

# Keep side effect; explicit environment wins over the file.
_ = load_dotenv(find_dotenv(usecwd=True), override=False)

from .calllog import ApiCallLog, CallLog, JsonlCallLog, open_bank_call_log
from .config import PathsConfig, RunDefaults, Settings
from .errors import (
    BankProcessingError,
    BatchFailedError,
    ConfigError,
    DuplicateFeatureIdError,
    ExternalCallError,
    FeatureExecutionError,
    InvalidBankError,
    InvalidOptionsError,
    MissingProviderError,
    NoResultError,
    PluginOutputError,
    ReplayMissError,
    ReplayRecordedError,
)
from .executor import ExecuteBankResult, Executor, FeatureRunResult, ItemProgressEvent, ItemResult
from .gateway import ExternalCallGateway
from .models import (
    AccentedPiece,
    AccentType,
    ErrorPolicy,
    FeatureConfig,
    FeatureKind,
    InputBank,
    ItemOutcome,
    OutputBank,
    ReplayPolicy,
    TranslationDetail,
)
from .plugins import (
    CacheIdentity,
    ExternalCallRequest,
    Plugin,
    PluginContext,
    PluginRegistry,
    TranslateGemmaPlugin,
    VduKirciuoklisPlugin,
)
from .progress import ProgressRenderer
from .runtime import ProcessingConfig, ProcessingRuntime, build_output_bank, run_processing
from .transport import HttpFormRequest, HttpJsonRequest, HttpTransport
from .view import OutputBankView

__version__ = "0.1.0"

__all__ = [
    # Runtime
    "ProcessingConfig",
    "ProcessingRuntime",
    "run_processing",
    "build_output_bank",
    "Executor",
    "ExecuteBankResult",
    "FeatureRunResult",
    "ItemResult",
    "ItemProgressEvent",
    "ExternalCallGateway",
    "ProgressRenderer",
    "OutputBankView",
    # Call log
    "ApiCallLog",
    "CallLog",
    "JsonlCallLog",
    "open_bank_call_log",
    # Plugins
    "Plugin",
    "PluginContext",
    "PluginRegistry",
    "CacheIdentity",
    "ExternalCallRequest",
    "TranslateGemmaPlugin",
    "VduKirciuoklisPlugin",
    # Transport
    "HttpJsonRequest",
    "HttpFormRequest",
    "HttpTransport",
    # Models
    "FeatureKind",
    "ReplayPolicy",
    "ErrorPolicy",
    "ItemOutcome",
    "FeatureConfig",
    "InputBank",
    "OutputBank",
    "TranslationDetail",
    "AccentType",
    "AccentedPiece",
    # Config
    "Settings",
    "PathsConfig",
    "RunDefaults",
    # Errors
    "BankProcessingError",
    "ConfigError",
    "InvalidBankError",
    "MissingProviderError",
    "DuplicateFeatureIdError",
    "InvalidOptionsError",
    "NoResultError",
    "PluginOutputError",
    "FeatureExecutionError",
    "ReplayMissError",
    "ReplayRecordedError",
    "ExternalCallError",
    "BatchFailedError",
]
