"""API routes for pod-doctor."""
import asyncio
import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from poddoctor.errors import ClusterUnreachableError, PodNotFoundError, SignalSourceError
from poddoctor.k8s_client import KubernetesSignalSource, SignalSource
from poddoctor.models import (
    DiagnoseRequest,
    DiagnoseResponse,
    HealthResponse,
    PodRefItem,
    ScanRequest,
    ScanResponse,
)
from poddoctor.pipeline import DiagnosticPipeline
from poddoctor.report import diagnosis_to_markdown, scan_summary_markdown
from poddoctor.scanner import collect_pod_refs, scan_all, summarize

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])

# One client per process; created lazily so the app starts without a cluster
_source: KubernetesSignalSource | None = None


def get_source() -> SignalSource:
    global _source
    if _source is None:
        try:
            _source = KubernetesSignalSource()
        except ClusterUnreachableError as e:
            raise HTTPException(status_code=502, detail=str(e))
    return _source


def get_pipeline(source: SignalSource = Depends(get_source)) -> DiagnosticPipeline:
    return DiagnosticPipeline(source)


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    kube = False
    try:
        source = get_source()
        check = getattr(source, "check_connection", None)
        kube = bool(check()) if check is not None else True
    except HTTPException:
        pass
    return HealthResponse(status="ok", kube_connected=kube)


@router.get("/namespaces")
async def get_namespaces(source: SignalSource = Depends(get_source)) -> list[str]:
    try:
        return await asyncio.to_thread(source.list_namespaces)
    except SignalSourceError as e:
        logger.warning("list_namespaces failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/pods", response_model=list[PodRefItem])
async def get_pods(
    namespace: str = "default",
    selector: str | None = None,
    source: SignalSource = Depends(get_source),
) -> list[PodRefItem]:
    try:
        refs = await asyncio.to_thread(collect_pod_refs, source, namespace, selector or None)
    except SignalSourceError as e:
        logger.warning("list pods failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return [PodRefItem(namespace=r.namespace, name=r.name) for r in refs]


@router.post("/diagnose", response_model=DiagnoseResponse)
async def diagnose(req: DiagnoseRequest, pipeline: DiagnosticPipeline = Depends(get_pipeline)) -> DiagnoseResponse:
    try:
        diagnosis = await asyncio.to_thread(pipeline.diagnose, req.namespace, req.name)
    except PodNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except SignalSourceError as e:
        logger.warning("diagnose failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    return DiagnoseResponse(diagnosis=diagnosis, summary_markdown=diagnosis_to_markdown(diagnosis))


@router.post("/scan", response_model=ScanResponse)
async def scan(
    req: ScanRequest,
    source: SignalSource = Depends(get_source),
    pipeline: DiagnosticPipeline = Depends(get_pipeline),
) -> ScanResponse:
    if req.scope not in ("namespace", "cluster"):
        raise HTTPException(status_code=400, detail="scope must be 'namespace' or 'cluster'")
    namespace = req.namespace.strip() if req.namespace and req.namespace.strip() else None
    if req.scope == "namespace" and not namespace:
        raise HTTPException(status_code=400, detail="namespace required when scope is 'namespace'")
    start = time.perf_counter()
    try:
        refs = await asyncio.to_thread(
            collect_pod_refs,
            source,
            namespace,
            req.label_selector or None,
            req.scope == "cluster",
        )
    except SignalSourceError as e:
        logger.warning("scan listing failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    diagnoses = await scan_all(
        pipeline,
        refs,
        concurrency=req.concurrency,
        only_unhealthy=req.only_unhealthy,
    )
    counts = summarize(diagnoses)
    return ScanResponse(
        diagnoses=diagnoses,
        counts=counts,
        summary_markdown=scan_summary_markdown(diagnoses, counts),
        duration_ms=int((time.perf_counter() - start) * 1000),
    )
