"""Runtime interception layer for sandboxed dynamic code."""

from .checker import (  # noqa: F401
    MethodPointer,
    checked_binary_op,
    checked_call,
    checked_cast,
    checked_comparison,
    checked_constructor,
    checked_get_array,
    checked_get_attribute,
    checked_get_property,
    checked_set_array,
    checked_set_attribute,
    checked_set_property,
    checked_static_call,
    checked_super_call,
    checked_unary_op,
)
from .config import PolicyConfig, PolicySpec, install, load_config  # noqa: F401
from .constructors import (  # noqa: F401
    SuperConstructorWrapper,
    ThisConstructorWrapper,
    checked_super_constructor,
    checked_this_constructor,
    synthetic_constructor,
)
from .errors import (  # noqa: F401
    AccessDeniedError,
    ConfigError,
    ConsistencyError,
    ResolutionError,
    SecurityError,
)
from .interceptor import Interceptor, Invoker, ValueFilter  # noqa: F401
from .models import Operation, OperationKind, Super  # noqa: F401
from .registry import active_chain, bind_context, register, registered, unregister  # noqa: F401
from .reject import REJECT_EVERYTHING, RejectEverythingInterceptor  # noqa: F401
from .trace import TraceEvent, TracingInterceptor  # noqa: F401

__all__ = [
    "AccessDeniedError",
    "ConfigError",
    "ConsistencyError",
    "Interceptor",
    "Invoker",
    "MethodPointer",
    "Operation",
    "OperationKind",
    "PolicyConfig",
    "PolicySpec",
    "REJECT_EVERYTHING",
    "RejectEverythingInterceptor",
    "ResolutionError",
    "SecurityError",
    "Super",
    "SuperConstructorWrapper",
    "ThisConstructorWrapper",
    "TraceEvent",
    "TracingInterceptor",
    "ValueFilter",
    "active_chain",
    "bind_context",
    "checked_binary_op",
    "checked_call",
    "checked_cast",
    "checked_comparison",
    "checked_constructor",
    "checked_get_array",
    "checked_get_attribute",
    "checked_get_property",
    "checked_set_array",
    "checked_set_attribute",
    "checked_set_property",
    "checked_static_call",
    "checked_super_call",
    "checked_super_constructor",
    "checked_this_constructor",
    "checked_unary_op",
    "install",
    "load_config",
    "register",
    "registered",
    "synthetic_constructor",
    "unregister",
]
