from .client import DocumentClient as DocumentClient
from .config import ClientConfig as ClientConfig
