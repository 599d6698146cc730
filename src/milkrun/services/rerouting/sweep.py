"""Periodic rerouting sweep over all in-progress clusters."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

from ...config import settings
from ...persistence.assignments import AssignmentStore
from .analyzer import RouteAnalyzer
from .applier import ReroutingApplier
from .models import ClusterNotFoundError, RouteUpdate, SweepReport

logger = logging.getLogger(__name__)


def check_and_optimize_routes(
    store: AssignmentStore,
    analyzer: RouteAnalyzer,
    applier: ReroutingApplier,
    auto_apply: bool | None = None,
    max_workers: int | None = None,
    cluster_timeout_seconds: float | None = None,
) -> SweepReport:
    """Analyze every active cluster and apply (or just collect) suggested reroutes.

    Clusters are analyzed concurrently. A failing or slow cluster is recorded
    in the report and skipped for this cycle; the rest of the sweep continues.
    """

    auto_apply = settings.auto_apply_reroutes if auto_apply is None else auto_apply
    max_workers = max_workers or settings.sweep_max_workers
    timeout = cluster_timeout_seconds or settings.sweep_cluster_timeout_seconds
    report = SweepReport()

    try:
        cluster_ids = store.list_active_cluster_ids()
    except Exception as exc:
        logger.error(f"[DYNAMIC ROUTING] Could not list active clusters: {exc}")
        report.failed["*"] = f"list_active_clusters: {exc}"
        return report

    report.clusters_checked = len(cluster_ids)
    if not cluster_ids:
        return report

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="reroute")
    try:
        futures = {cluster_id: executor.submit(analyzer.suggest_route_optimizations, cluster_id) for cluster_id in cluster_ids}
        for cluster_id, future in futures.items():
            try:
                updates: list[RouteUpdate] = future.result(timeout=timeout)
            except FutureTimeoutError:
                # A future that never left the queue can still be cancelled.
                if future.cancel():
                    logger.warning(f"[DYNAMIC ROUTING] Cluster {cluster_id} never started; all workers busy, skipping")
                    report.failed[cluster_id] = "skipped: pool saturated"
                else:
                    logger.warning(f"[DYNAMIC ROUTING] Analysis of cluster {cluster_id} timed out after {timeout:.0f}s; skipping")
                    report.failed[cluster_id] = "analyze: timed out"
                continue
            except ClusterNotFoundError as exc:
                logger.info(f"[DYNAMIC ROUTING] {exc}")
                continue
            except Exception as exc:
                logger.error(f"[DYNAMIC ROUTING] Analysis of cluster {cluster_id} failed: {exc}")
                report.failed[cluster_id] = f"analyze: {exc}"
                continue

            if not updates:
                continue
            best = updates[0]
            report.suggested.append(best)
            logger.info(
                f"[DYNAMIC ROUTING] Suggested optimization for cluster {cluster_id}: "
                f"time saved {best.time_saved_min:.1f} min, distance saved {best.distance_saved_km:.2f} km, "
                f"reason: {best.reason}"
            )
            if not auto_apply:
                continue
            if applier.apply_reroute(cluster_id, best.optimized_route):
                report.applied.append(cluster_id)
            else:
                report.failed[cluster_id] = "apply: store rejected the new sequence"
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    logger.info(
        f"[DYNAMIC ROUTING] Sweep complete: {report.clusters_checked} clusters, "
        f"{len(report.suggested)} suggestions, {len(report.applied)} applied, {len(report.failed)} failed"
    )
    return report
