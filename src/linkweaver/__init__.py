"""
Multi-host web crawler that performs depth-bounded BFS from one seed URI per host.
Outputs a link graph and an error log per host, plus Markdown or JSON page exports.
"""
from linkweaver.crawler import Crawler, CrawlConfig
from linkweaver.errors import CrawlError, CrawlExecutionError, RootFetchError
from linkweaver.export import ExportConfig, ExportFormat, FileResultSink
from linkweaver.models import CrawlStats

__version__ = "1.0.0"
__all__ = [
    "Crawler",
    "CrawlConfig",
    "CrawlError",
    "CrawlExecutionError",
    "CrawlStats",
    "ExportConfig",
    "ExportFormat",
    "FileResultSink",
    "RootFetchError",
]
