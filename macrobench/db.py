"""SQLite storage for macro benchmark results."""

import logging
import sqlite3
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import MissingMetricsError, RetrievalError
from .results import QPS, BenchmarkID, Details, ExecutionMetrics, Result
from .store import SampleStore

logger = logging.getLogger(__name__)


# Default database path
DEFAULT_DB_PATH = "results/macrobench.db"


class BenchmarkDatabase(SampleStore):
    """SQLite database for storing and querying macro benchmark runs."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """
        Initialize the benchmark database.

        Args:
            db_path: Path to the SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = None
        self._init_db()

    def _init_db(self) -> None:
        """Initialize database schema, creating tables if they don't exist."""
        conn = self._get_connection()
        cursor = conn.cursor()

        # One row per benchmark execution
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS benchmark (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                source TEXT NOT NULL,
                git_ref TEXT NOT NULL,
                type TEXT NOT NULL,
                planner_version TEXT NOT NULL,
                exec_uuid TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        # OLTP and TPCC share one schema
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS results (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                benchmark_id INTEGER NOT NULL,
                queries INTEGER,
                qps_total REAL NOT NULL,
                qps_reads REAL NOT NULL,
                qps_writes REAL NOT NULL,
                qps_other REAL NOT NULL,
                tps REAL NOT NULL,
                latency REAL NOT NULL,
                errors REAL NOT NULL,
                reconnects REAL NOT NULL,
                time INTEGER NOT NULL,
                threads REAL NOT NULL,
                FOREIGN KEY (benchmark_id) REFERENCES benchmark (id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS metrics (
                exec_uuid TEXT PRIMARY KEY,
                total_components_cpu_time REAL NOT NULL,
                total_components_mem_stats_alloc_bytes REAL NOT NULL
            )
        """)

        # cpu_time or mem_stats_alloc_bytes is NULL when a component only reported one
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS component_metrics (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                exec_uuid TEXT NOT NULL,
                component TEXT NOT NULL,
                cpu_time REAL,
                mem_stats_alloc_bytes REAL,
                FOREIGN KEY (exec_uuid) REFERENCES metrics (exec_uuid)
            )
        """)

        # Create indexes for common queries
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_benchmark_lookup
            ON benchmark (type, git_ref, planner_version)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_results_benchmark_id
            ON results (benchmark_id)
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_component_metrics_exec_uuid
            ON component_metrics (exec_uuid)
        """)

        conn.commit()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a database connection.

        Note: Uses check_same_thread=False so that concurrent requests served
        from different threads can share the store.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def create_benchmark(
        self,
        benchmark_type: str,
        git_ref: str,
        planner: str,
        source: str = "cli",
        exec_uuid: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> BenchmarkID:
        """
        Create a new benchmark record.

        Args:
            benchmark_type: Benchmark type (e.g., 'oltp', 'tpcc')
            git_ref: Commit the benchmark ran against
            planner: Planner version used
            source: What triggered the benchmark (e.g., 'cron', 'webhook')
            exec_uuid: Execution identifier (generated when omitted)
            created_at: Creation time (defaults to now)

        Returns:
            BenchmarkID of the created record
        """
        conn = self._get_connection()
        with conn:
            return self._insert_benchmark(
                conn.cursor(), benchmark_type, git_ref, planner, source, exec_uuid, created_at
            )

    def save_result(self, benchmark_id: int, result: Result) -> int:
        """
        Save the raw result of a benchmark.

        Args:
            benchmark_id: The benchmark this result belongs to
            result: Result object

        Returns:
            id: The ID of the created record
        """
        conn = self._get_connection()
        with conn:
            return self._insert_result(conn.cursor(), benchmark_id, result)

    def save_metrics(self, exec_uuid: str, metrics: ExecutionMetrics) -> None:
        """
        Save the execution metrics of a benchmark.

        The metrics row and its component rows are written in one transaction.

        Args:
            exec_uuid: Execution identifier shared with the benchmark record
            metrics: ExecutionMetrics object
        """
        conn = self._get_connection()
        with conn:
            self._insert_metrics(conn.cursor(), exec_uuid, metrics)

    def save_run(
        self,
        benchmark_type: str,
        git_ref: str,
        planner: str,
        result: Result,
        metrics: Optional[ExecutionMetrics] = None,
        source: str = "cli",
        exec_uuid: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Details:
        """
        Save a complete benchmark run (benchmark, result and metrics records).

        All records are written in one transaction. If any insert fails
        nothing of the run is stored.

        Returns:
            Details of the stored run
        """
        conn = self._get_connection()
        with conn:
            cursor = conn.cursor()
            benchmark_id = self._insert_benchmark(
                cursor, benchmark_type, git_ref, planner, source, exec_uuid, created_at
            )
            self._insert_result(cursor, benchmark_id.id, result)
            if metrics is not None:
                self._insert_metrics(cursor, benchmark_id.exec_uuid, metrics)

        return Details(
            benchmark_id=benchmark_id,
            git_ref=git_ref,
            result=result,
            metrics=metrics,
        )

    @staticmethod
    def _insert_benchmark(
        cursor: sqlite3.Cursor,
        benchmark_type: str,
        git_ref: str,
        planner: str,
        source: str,
        exec_uuid: Optional[str],
        created_at: Optional[datetime],
    ) -> BenchmarkID:
        if exec_uuid is None:
            exec_uuid = str(uuid.uuid4())
        if created_at is None:
            created_at = datetime.now()

        cursor.execute("""
            INSERT INTO benchmark (
                source, git_ref, type, planner_version, exec_uuid, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
        """, (
            source, git_ref, benchmark_type, planner, exec_uuid,
            created_at.isoformat(timespec="microseconds"),
        ))

        return BenchmarkID(
            id=cursor.lastrowid,
            source=source,
            created_at=created_at,
            exec_uuid=exec_uuid,
        )

    @staticmethod
    def _insert_result(cursor: sqlite3.Cursor, benchmark_id: int, result: Result) -> int:
        cursor.execute("""
            INSERT INTO results (
                benchmark_id, queries, qps_total, qps_reads, qps_writes, qps_other,
                tps, latency, errors, reconnects, time, threads
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            benchmark_id, result.queries,
            result.qps.total, result.qps.reads, result.qps.writes, result.qps.other,
            result.tps, result.latency, result.errors, result.reconnects,
            result.time, result.threads,
        ))
        return cursor.lastrowid

    @staticmethod
    def _insert_metrics(cursor: sqlite3.Cursor, exec_uuid: str, metrics: ExecutionMetrics) -> None:
        cursor.execute("""
            INSERT INTO metrics (
                exec_uuid, total_components_cpu_time, total_components_mem_stats_alloc_bytes
            ) VALUES (?, ?, ?)
        """, (
            exec_uuid,
            metrics.total_components_cpu_time,
            metrics.total_components_mem_stats_alloc_bytes,
        ))

        components = sorted(
            set(metrics.components_cpu_time) | set(metrics.components_mem_stats_alloc_bytes)
        )
        for component in components:
            cursor.execute("""
                INSERT INTO component_metrics (
                    exec_uuid, component, cpu_time, mem_stats_alloc_bytes
                ) VALUES (?, ?, ?, ?)
            """, (
                exec_uuid,
                component,
                metrics.components_cpu_time.get(component),
                metrics.components_mem_stats_alloc_bytes.get(component),
            ))

    def fetch_runs(
        self,
        benchmark_type: str,
        git_ref: str,
        planner: str,
        last_days: Optional[int] = None,
    ) -> List[Details]:
        """
        Fetch the runs of a benchmark type for a git ref and planner version.

        Metrics are not joined here; use :meth:`fetch_metrics` per run.

        Args:
            benchmark_type: Benchmark type (e.g., 'oltp', 'tpcc')
            git_ref: Commit the benchmarks ran against
            planner: Planner version
            last_days: Only return runs created in the last N days

        Returns:
            List of Details ordered by benchmark ID
        """
        query = """
            SELECT b.id, b.source, b.git_ref, b.exec_uuid, b.created_at,
                   r.queries, r.qps_total, r.qps_reads, r.qps_writes, r.qps_other,
                   r.tps, r.latency, r.errors, r.reconnects, r.time, r.threads
            FROM benchmark b
            INNER JOIN results r ON r.benchmark_id = b.id
            WHERE b.type = ? AND b.git_ref = ? AND b.planner_version = ?
        """
        params: List[Any] = [benchmark_type, git_ref, planner]

        if last_days is not None:
            cutoff = datetime.now() - timedelta(days=last_days)
            query += " AND b.created_at >= ?"
            params.append(cutoff.isoformat(timespec="microseconds"))

        query += " ORDER BY b.id"

        try:
            cursor = self._get_connection().cursor()
            cursor.execute(query, params)
            rows = cursor.fetchall()
            runs = [self._row_to_details(dict(row)) for row in rows]
        except sqlite3.Error as e:
            raise RetrievalError(f"Failed to fetch {benchmark_type} runs for {git_ref}: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise RetrievalError(f"Malformed {benchmark_type} row for {git_ref}: {e}") from e

        logger.debug(
            "Fetched %d %s runs for %s (planner=%s)", len(runs), benchmark_type, git_ref, planner
        )
        return runs

    @staticmethod
    def _row_to_details(row: Dict[str, Any]) -> Details:
        """Build Details from a joined benchmark/results row."""
        created_at = row.get("created_at")
        return Details(
            benchmark_id=BenchmarkID(
                id=row["id"],
                source=row["source"],
                created_at=datetime.fromisoformat(created_at) if created_at else None,
                exec_uuid=row["exec_uuid"],
            ),
            git_ref=row["git_ref"],
            result=Result(
                qps=QPS(
                    total=row["qps_total"],
                    reads=row["qps_reads"],
                    writes=row["qps_writes"],
                    other=row["qps_other"],
                ),
                tps=row["tps"],
                latency=row["latency"],
                errors=row["errors"],
                reconnects=row["reconnects"],
                time=int(row["time"]),
                threads=row["threads"],
                queries=row.get("queries") or 0,
            ),
        )

    def fetch_metrics(self, exec_uuid: str) -> ExecutionMetrics:
        """
        Fetch the execution metrics recorded for an execution.

        Args:
            exec_uuid: Execution identifier

        Returns:
            ExecutionMetrics object

        Raises:
            MissingMetricsError: If no metrics exist for exec_uuid
            RetrievalError: If the database query fails
        """
        try:
            cursor = self._get_connection().cursor()
            cursor.execute("SELECT * FROM metrics WHERE exec_uuid = ?", (exec_uuid,))
            row = cursor.fetchone()
            if not row:
                raise MissingMetricsError(exec_uuid)

            cursor.execute(
                "SELECT * FROM component_metrics WHERE exec_uuid = ? ORDER BY component",
                (exec_uuid,),
            )
            component_rows = cursor.fetchall()
        except sqlite3.Error as e:
            raise RetrievalError(f"Failed to fetch metrics for {exec_uuid}: {e}") from e

        cpu_time = {}
        mem_alloc = {}
        for c in component_rows:
            if c["cpu_time"] is not None:
                cpu_time[c["component"]] = c["cpu_time"]
            if c["mem_stats_alloc_bytes"] is not None:
                mem_alloc[c["component"]] = c["mem_stats_alloc_bytes"]

        return ExecutionMetrics(
            total_components_cpu_time=row["total_components_cpu_time"],
            components_cpu_time=cpu_time,
            total_components_mem_stats_alloc_bytes=row["total_components_mem_stats_alloc_bytes"],
            components_mem_stats_alloc_bytes=mem_alloc,
        )

    def get_git_refs(self, benchmark_type: Optional[str] = None) -> List[str]:
        """
        Get the distinct git refs that have recorded benchmarks.

        Args:
            benchmark_type: Filter by benchmark type

        Returns:
            Git refs, most recently benchmarked first
        """
        query = "SELECT git_ref, MAX(created_at) AS latest FROM benchmark WHERE 1=1"
        params = []

        if benchmark_type:
            query += " AND type = ?"
            params.append(benchmark_type)

        query += " GROUP BY git_ref ORDER BY latest DESC"

        try:
            cursor = self._get_connection().cursor()
            cursor.execute(query, params)
            return [row["git_ref"] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise RetrievalError(f"Failed to list git refs: {e}") from e


def get_database(db_path: str = DEFAULT_DB_PATH) -> BenchmarkDatabase:
    """
    Get a BenchmarkDatabase instance.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        BenchmarkDatabase instance
    """
    return BenchmarkDatabase(db_path)
