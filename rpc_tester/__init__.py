"""Differential JSON-RPC equality tester for Ethereum execution nodes."""

from .config import BlockRange, Category, RunConfig
from .endpoints import EndpointSet, RpcEndpoint
from .equality import Report, RpcTester, TestUnit
from .errors import CanonicalizationError, FetchError, ReadinessError, TesterError, TransportError

__version__ = "0.1.0"
