"""C-style library surface: integer handles in, result codes out.

Every public function here is a boundary. Internal code raises typed
exceptions; the wrappers below turn them into result codes (or the
documented sentinel of a query) so that no exception reaches the caller.

Usage::

    from fcovparse.api import library as lib

    db = lib.create_coverage_database()
    parser = lib.create_groups_parser()
    code = lib.parse_coverage_file(parser, "groups.txt", db)
    if code != 0:
        print(lib.get_error_string(code))
    print(lib.get_num_groups(db), lib.calculate_overall_score(db))
    lib.destroy_parser(parser)
    lib.destroy_coverage_database(db)
"""

import functools
from pathlib import Path
from typing import Any, Callable, Optional, Union

import yaml

from .. import __version__
from ..adapters.cov.parsers import CoverageParser
from ..config import get_logger
from ..config.schemas import ParserSettings
from ..core.database import CoverageDatabase
from ..core.errors import (
    CoverageParserError,
    ErrorKind,
    InvalidParameterError,
    error_string,
)
from ..core.models import ParserMode, ReportKind
from ..engine.parallel import PerformanceStats
from . import export
from .registry import NULL_HANDLE, HandleRegistry

logger = get_logger(__name__)

LIBRARY_INFO = f"fcovparse v{__version__} - functional coverage report parser"

PathLike = Union[str, Path]


def _guarded(name: str, func: Callable[..., Any], *args, **kwargs) -> tuple[int, Any]:
    """Run ``func`` and translate any exception into a result code."""
    try:
        return int(ErrorKind.SUCCESS), func(*args, **kwargs)
    except CoverageParserError as e:
        logger.warning(f"{name}: {e}")
        return e.code, None
    except MemoryError:
        logger.error(f"{name}: out of memory")
        return int(ErrorKind.OUT_OF_MEMORY), None
    except Exception:
        logger.exception(f"{name}: unexpected internal error")
        return int(ErrorKind.PARSE_FAILED), None


def returns_code(func: Callable[..., Any]) -> Callable[..., int]:
    """Boundary for operations: 0 on success, the error's code otherwise."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> int:
        code, _ = _guarded(func.__name__, func, *args, **kwargs)
        return code

    return wrapper


def returns_sentinel(sentinel: Any) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Boundary for queries: the result on success, ``sentinel`` otherwise."""

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            code, result = _guarded(func.__name__, func, *args, **kwargs)
            return result if code == ErrorKind.SUCCESS else sentinel

        return wrapper

    return decorator


def _require_path(filename: Optional[PathLike]) -> PathLike:
    if filename is None or not str(filename):
        raise InvalidParameterError("File name must not be empty")
    return filename


class CoverageLibrary:
    """One registry of parsers and databases plus the calls that use them.

    Handles are plain positive integers; 0 is the null handle. All calls may
    be made from several threads at once, except that a single database must
    not be parsed into from two threads concurrently.

    Args:
        settings: Settings applied to parsers and databases created afterwards
    """

    def __init__(self, settings: Optional[ParserSettings] = None) -> None:
        self.settings = settings or ParserSettings()
        self.registry = HandleRegistry()

    def configure(self, settings: ParserSettings) -> None:
        """Replace the settings used for newly created objects."""
        self.settings = settings

    @returns_code
    def load_settings(self, path: PathLike) -> None:
        """Load settings from a YAML file for newly created objects."""
        try:
            self.settings = ParserSettings.from_yaml(Path(_require_path(path)))
        except FileNotFoundError as e:
            raise InvalidParameterError(str(e)) from e
        except (ValueError, yaml.YAMLError) as e:
            raise InvalidParameterError(f"Invalid settings in {path}: {e}") from e

    # Lifecycle

    @returns_sentinel(NULL_HANDLE)
    def create_coverage_database(self) -> int:
        return self.registry.register(CoverageDatabase(weights=self.settings.weights))

    @returns_code
    def destroy_coverage_database(self, handle: Optional[int]) -> None:
        """Release a database. Unknown or already destroyed handles are ignored."""
        self.registry.destroy(handle, CoverageDatabase)

    @returns_sentinel(NULL_HANDLE)
    def create_parser(
        self, kind: Union[ReportKind, str], mode: ParserMode = ParserMode.SEQUENTIAL
    ) -> int:
        """Create a parser of any kind and mode; 0 on failure."""
        return self.registry.register(CoverageParser(kind, mode, self.settings))

    def create_dashboard_parser(self) -> int:
        return self.create_parser(ReportKind.DASHBOARD)

    def create_groups_parser(self) -> int:
        return self.create_parser(ReportKind.GROUPS)

    def create_hierarchy_parser(self) -> int:
        return self.create_parser(ReportKind.HIERARCHY)

    def create_modlist_parser(self) -> int:
        return self.create_parser(ReportKind.MODLIST)

    def create_assert_parser(self) -> int:
        return self.create_parser(ReportKind.ASSERT)

    def create_high_performance_groups_parser(self) -> int:
        return self.create_parser(ReportKind.GROUPS, ParserMode.CHUNKED)

    def create_high_performance_hierarchy_parser(self) -> int:
        return self.create_parser(ReportKind.HIERARCHY, ParserMode.CHUNKED)

    def create_high_performance_assert_parser(self) -> int:
        return self.create_parser(ReportKind.ASSERT, ParserMode.CHUNKED)

    @returns_sentinel(NULL_HANDLE)
    def create_optimal_parser(self, filename: PathLike, kind: Union[ReportKind, str]) -> int:
        """Pick the chunked parser for large files and the sequential one otherwise.

        A file that does not exist yet counts as empty.
        """
        path = Path(_require_path(filename))
        size = path.stat().st_size if path.is_file() else 0
        parser = CoverageParser(kind, ParserMode.SEQUENTIAL, self.settings)

        if size >= self.settings.parallel_threshold_bytes and parser.grammar.splittable:
            parser = CoverageParser(kind, ParserMode.CHUNKED, self.settings)
        logger.debug(f"Optimal parser for {path.name} ({size} bytes): {parser.mode.value}")
        return self.registry.register(parser)

    @returns_code
    def destroy_parser(self, handle: Optional[int]) -> None:
        """Release a parser. Unknown or already destroyed handles are ignored."""
        self.registry.destroy(handle, CoverageParser)

    def get_database(self, handle: int) -> CoverageDatabase:
        """The database object behind ``handle`` for in-process callers.

        Unlike the C-style calls this raises InvalidHandleError.
        """
        return self.registry.resolve(handle, CoverageDatabase)

    def get_parser(self, handle: int) -> CoverageParser:
        """The parser object behind ``handle``; raises InvalidHandleError."""
        return self.registry.resolve(handle, CoverageParser)

    # Parsing

    @returns_code
    def parse_coverage_file(
        self, parser: Optional[int], filename: Optional[PathLike], db: Optional[int]
    ) -> None:
        """Parse ``filename`` with ``parser`` into ``db``; returns a result code."""
        self._parse(parser, filename, db, chunked_only=False)

    @returns_code
    def parse_coverage_file_high_performance(
        self, parser: Optional[int], filename: Optional[PathLike], db: Optional[int]
    ) -> None:
        """Same as parse_coverage_file, restricted to chunked parsers."""
        self._parse(parser, filename, db, chunked_only=True)

    def _parse(self, parser_handle, filename, db_handle, chunked_only: bool) -> None:
        path = _require_path(filename)
        parser: CoverageParser = self.registry.resolve(parser_handle, CoverageParser)
        db: CoverageDatabase = self.registry.resolve(db_handle, CoverageDatabase)
        if chunked_only and not parser.is_chunked:
            raise InvalidParameterError(f"Handle {parser_handle} is not a high-performance parser")
        parser.parse(path, db)

    # Queries

    @returns_sentinel(-1)
    def get_num_groups(self, db: Optional[int]) -> int:
        return self.registry.resolve(db, CoverageDatabase).get_num_groups()

    @returns_sentinel(-1)
    def get_num_hierarchy_instances(self, db: Optional[int]) -> int:
        return self.registry.resolve(db, CoverageDatabase).get_num_hierarchy_instances()

    @returns_sentinel(-1)
    def get_num_modules(self, db: Optional[int]) -> int:
        return self.registry.resolve(db, CoverageDatabase).get_num_modules()

    @returns_sentinel(-1)
    def get_num_asserts(self, db: Optional[int]) -> int:
        return self.registry.resolve(db, CoverageDatabase).get_num_asserts()

    @returns_sentinel(-1)
    def validate_database(self, db: Optional[int]) -> int:
        """1 if valid, 0 if invalid, -1 on a bad handle."""
        return 1 if self.registry.resolve(db, CoverageDatabase).validate() else 0

    @returns_sentinel(-1.0)
    def calculate_overall_score(self, db: Optional[int]) -> float:
        return self.registry.resolve(db, CoverageDatabase).calculate_overall_score()

    # Export

    @returns_code
    def export_coverage_to_xml(self, db: Optional[int], filename: Optional[PathLike]) -> None:
        path = _require_path(filename)
        export.export_to_xml(self.registry.resolve(db, CoverageDatabase), path)

    @returns_code
    def export_coverage_to_json(self, db: Optional[int], filename: Optional[PathLike]) -> None:
        path = _require_path(filename)
        export.export_to_json(self.registry.resolve(db, CoverageDatabase), path)

    # Diagnostics

    def get_version_string(self) -> str:
        return __version__

    def get_library_info(self) -> str:
        return LIBRARY_INFO

    def get_error_string(self, code: int) -> str:
        return error_string(code)

    def get_memory_usage(self) -> tuple[int, int, int]:
        """Memory held by live databases.

        Returns:
            (result code, approximate total bytes, number of stored records)
        """
        code, usage = _guarded("get_memory_usage", self._memory_usage)
        if usage is None:
            return code, 0, 0
        return code, usage[0], usage[1]

    def _memory_usage(self) -> tuple[int, int]:
        total_bytes = 0
        num_allocations = 0
        for db in self.registry.live_objects(CoverageDatabase):
            total_bytes += db.memory_footprint()
            num_allocations += (
                db.get_num_groups() + db.get_num_hierarchy_instances()
                + db.get_num_modules() + db.get_num_asserts()
            )
        return total_bytes, num_allocations

    def get_performance_stats(self, parser: Optional[int]) -> tuple[int, Optional[PerformanceStats]]:
        """Statistics of the parser's most recent parse (None before its first parse)."""
        return _guarded(
            "get_performance_stats",
            lambda: self.registry.resolve(parser, CoverageParser).last_stats,
        )

    def cleanup_library(self) -> int:
        """Destroy every live handle. Handle numbers are still never reused."""
        released = self.registry.clear()
        logger.debug(f"cleanup_library released {released} handle(s)")
        return released


_default_library = CoverageLibrary()


def default_library() -> CoverageLibrary:
    return _default_library


configure = _default_library.configure
load_settings = _default_library.load_settings
create_coverage_database = _default_library.create_coverage_database
destroy_coverage_database = _default_library.destroy_coverage_database
create_parser = _default_library.create_parser
create_dashboard_parser = _default_library.create_dashboard_parser
create_groups_parser = _default_library.create_groups_parser
create_hierarchy_parser = _default_library.create_hierarchy_parser
create_modlist_parser = _default_library.create_modlist_parser
create_assert_parser = _default_library.create_assert_parser
create_high_performance_groups_parser = _default_library.create_high_performance_groups_parser
create_high_performance_hierarchy_parser = _default_library.create_high_performance_hierarchy_parser
create_high_performance_assert_parser = _default_library.create_high_performance_assert_parser
create_optimal_parser = _default_library.create_optimal_parser
destroy_parser = _default_library.destroy_parser
parse_coverage_file = _default_library.parse_coverage_file
parse_coverage_file_high_performance = _default_library.parse_coverage_file_high_performance
get_num_groups = _default_library.get_num_groups
get_num_hierarchy_instances = _default_library.get_num_hierarchy_instances
get_num_modules = _default_library.get_num_modules
get_num_asserts = _default_library.get_num_asserts
validate_database = _default_library.validate_database
calculate_overall_score = _default_library.calculate_overall_score
export_coverage_to_xml = _default_library.export_coverage_to_xml
export_coverage_to_json = _default_library.export_coverage_to_json
get_version_string = _default_library.get_version_string
get_library_info = _default_library.get_library_info
get_error_string = _default_library.get_error_string
get_memory_usage = _default_library.get_memory_usage
get_performance_stats = _default_library.get_performance_stats
cleanup_library = _default_library.cleanup_library
