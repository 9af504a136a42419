# Services package
from .glob_filter import should_include, get_filtering_stats
from .collector import LocalTreeCollector
from .prefix_resolver import PrefixCache, PrefixResolver, GLOBAL_PREFIX_CACHE
from .upload_scheduler import UploadScheduler
from .session_logger import SessionLogger
from .status import StatusSink, CallbackStatusSink, ConsoleStatusSink

__all__ = [
    'should_include',
    'get_filtering_stats',
    'LocalTreeCollector',
    'PrefixCache',
    'PrefixResolver',
    'GLOBAL_PREFIX_CACHE',
    'UploadScheduler',
    'SessionLogger',
    'StatusSink',
    'CallbackStatusSink',
    'ConsoleStatusSink'
]
