# ========================
# api_server.py
# ========================

"""
FastAPI Server for the Time Usage Pipeline

Provides REST API endpoints for uploading survey files, running the pipeline
in the background and fetching the grouped report.
"""

import asyncio
import logging
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

import pandas as pd
import uvicorn
from fastapi import FastAPI, File, UploadFile, HTTPException, BackgroundTasks, Query
from fastapi.responses import FileResponse

from timeusage.pipeline import TimeUsagePipeline
from timeusage.pipeline.transformation import GROUPING_METHODS
from timeusage.utils import Config, DataGenerator, JobMetadataManager, setup_logging
from timeusage.utils.performance_monitor import get_system_stats

config = Config()
setup_logging(log_level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

job_metadata_manager = JobMetadataManager()

app = FastAPI(
    title="Time Usage Pipeline API",
    description="Upload time use survey files and get average daily hours per demographic group",
    version="1.0.0"
)

UPLOAD_DIR = Path(config.UPLOAD_DIR)
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
PROCESSED_DIR = Path(config.DEFAULT_OUTPUT_DIR)

JOB_NOT_FOUND_MSG = "Job not found"
JOB_NOT_COMPLETED_MSG = "Job not completed yet"


def initialize_job_status() -> Dict[str, Dict[str, Any]]:
    """Initialize job status by loading from metadata and discovering existing jobs."""
    job_status = job_metadata_manager.load_job_metadata()

    for job_id, job_data in job_metadata_manager.discover_existing_jobs(str(PROCESSED_DIR)).items():
        if job_id not in job_status:
            job_status[job_id] = job_data
            logger.info(f"Added discovered job {job_id}: {job_data['filename']}")

    if job_status:
        job_metadata_manager.save_job_metadata(job_status)

    return job_status


job_status: Dict[str, Dict[str, Any]] = initialize_job_status()


def persist_job_status():
    """Save current job status to persistent storage."""
    job_metadata_manager.save_job_metadata(job_status)


def _new_job(job_id: str, **fields) -> Dict[str, Any]:
    output_dir = PROCESSED_DIR / job_id
    job_status[job_id] = {
        'job_id': job_id,
        'status': 'queued',
        'created_at': datetime.now().isoformat(),
        'output_dir': str(output_dir),
        **fields
    }
    persist_job_status()
    return job_status[job_id]


def _get_completed_job(job_id: str) -> Dict[str, Any]:
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)
    job = job_status[job_id]
    if job['status'] != 'completed':
        raise HTTPException(status_code=400, detail=JOB_NOT_COMPLETED_MSG)
    if 'results' not in job:
        raise HTTPException(status_code=404, detail="No results available")
    return job


class PipelineJobManager:
    """Manages background pipeline jobs."""

    @staticmethod
    def run_pipeline(job_id: str, input_file: str, output_dir: str, method: str) -> None:
        """Run the pipeline for an uploaded file."""
        try:
            logger.info(f"Starting pipeline job {job_id}")
            job_status[job_id]['status'] = 'processing'
            job_status[job_id]['started_at'] = datetime.now().isoformat()

            pipeline = TimeUsagePipeline(
                input_file=input_file,
                output_dir=output_dir,
                method=method,
                config=config
            )

            if not pipeline.validate_input():
                raise ValueError("Input file validation failed")

            results = pipeline.run()

            job_status[job_id]['status'] = 'completed'
            job_status[job_id]['completed_at'] = datetime.now().isoformat()
            job_status[job_id]['results'] = results
            logger.info(f"Pipeline job {job_id} completed successfully")

        except Exception as e:
            logger.error(f"Pipeline job {job_id} failed: {e}")
            job_status[job_id]['status'] = 'failed'
            job_status[job_id]['error'] = str(e)
            job_status[job_id]['failed_at'] = datetime.now().isoformat()

        finally:
            persist_job_status()

    @staticmethod
    def run_sample_pipeline(job_id: str, num_rows: int, method: str) -> None:
        """Generate a synthetic survey, then run the pipeline on it."""
        input_file = job_status[job_id]['input_file']
        try:
            generation_stats = DataGenerator(seed=42).generate_dataset(input_file, num_rows=num_rows)
            job_status[job_id]['generation_stats'] = generation_stats
        except OSError as e:
            logger.error(f"Sample generation for job {job_id} failed: {e}")
            job_status[job_id]['status'] = 'failed'
            job_status[job_id]['error'] = str(e)
            persist_job_status()
            return

        PipelineJobManager.run_pipeline(job_id, input_file, job_status[job_id]['output_dir'], method)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Time Usage Pipeline API",
        "version": "1.0.0",
        "endpoints": {
            "upload": "/upload - Upload a survey CSV file",
            "run_pipeline": "/run-pipeline - Run the pipeline on a synthetic survey",
            "status": "/status/{job_id} - Check job status",
            "report": "/report/{job_id} - Grouped report as JSON",
            "download": "/download/{job_id}?file_type= - Download an output file",
            "jobs": "/jobs - List all jobs",
            "health": "/health - Health check",
            "api_docs": "/docs - API documentation"
        },
        "api_docs_url": "/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "active_jobs": len([j for j in job_status.values() if j['status'] == 'processing']),
        "system": get_system_stats()
    }


@app.post("/upload")
async def upload_file(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    method: str = Query("dataframe", description=f"Grouping method: {', '.join(GROUPING_METHODS)}")
):
    """
    Upload a survey CSV file and trigger the pipeline.

    Args:
        file: CSV file to upload
        method: Grouping implementation to use

    Returns:
        dict: Job ID and status information
    """
    if not file.filename.lower().endswith('.csv'):
        raise HTTPException(status_code=400, detail="Only CSV files are supported")
    if method not in GROUPING_METHODS:
        raise HTTPException(status_code=400, detail=f"Unknown method '{method}'")

    job_id = str(uuid.uuid4())
    file_path = UPLOAD_DIR / f"{job_id}_{Path(file.filename).name}"
    content = await file.read()

    def write_file():
        with open(file_path, "wb") as buffer:
            buffer.write(content)

    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, write_file)

    job = _new_job(
        job_id,
        filename=file.filename,
        input_file=str(file_path),
        method=method,
        file_size=len(content),
        type='upload'
    )

    background_tasks.add_task(
        PipelineJobManager.run_pipeline,
        job_id,
        job['input_file'],
        job['output_dir'],
        method
    )

    logger.info(f"Started pipeline job {job_id} for file {file.filename}")

    return {
        "job_id": job_id,
        "filename": file.filename,
        "status": "queued",
        "message": "File uploaded successfully. Pipeline processing started.",
        "estimated_processing_info": "Use /status/{job_id} to check progress"
    }


@app.post("/run-pipeline")
async def run_sample_pipeline(
    background_tasks: BackgroundTasks,
    num_rows: int = Query(1000, description="Number of synthetic respondents", ge=1, le=1_000_000),
    method: str = Query("dataframe", description=f"Grouping method: {', '.join(GROUPING_METHODS)}")
):
    """Run the pipeline on a freshly generated synthetic survey."""
    if method not in GROUPING_METHODS:
        raise HTTPException(status_code=400, detail=f"Unknown method '{method}'")

    job_id = str(uuid.uuid4())
    job = _new_job(
        job_id,
        filename="synthetic_atussum.csv",
        input_file=str(UPLOAD_DIR / f"{job_id}_synthetic_atussum.csv"),
        method=method,
        num_rows=num_rows,
        type='sample_pipeline'
    )

    background_tasks.add_task(PipelineJobManager.run_sample_pipeline, job_id, num_rows, method)

    return {
        "job_id": job_id,
        "status": job['status'],
        "type": job['type'],
        "message": f"Sample pipeline started with {num_rows:,} respondents"
    }


@app.get("/status/{job_id}")
async def get_job_status(job_id: str):
    """
    Get the status of a pipeline job.

    Args:
        job_id: Unique job identifier

    Returns:
        dict: Job status and results
    """
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)

    job = job_status[job_id].copy()

    if job['status'] == 'completed' and 'results' in job:
        stats = job['results'].get('processing_stats', {})
        job['summary'] = {
            'rows_read': stats.get('rows_read', 0),
            'eligible_respondents': stats.get('summary_stats', {}).get('records_kept', 0),
            'groups': stats.get('aggregation_stats', {}).get('groups', 0),
            'output_files': len(job['results'].get('saved_files', {}))
        }

    return job


@app.get("/jobs")
async def list_jobs(
    status: Optional[str] = Query(None, description="Filter by status: queued, processing, completed, failed"),
    limit: int = Query(50, description="Maximum number of jobs to return", ge=1, le=100)
):
    """List pipeline jobs, newest first."""
    jobs = list(job_status.values())

    if status:
        jobs = [job for job in jobs if job['status'] == status]

    jobs.sort(key=lambda x: x['created_at'] or '', reverse=True)
    jobs = jobs[:limit]

    return {
        "jobs": jobs,
        "total_count": len(job_status),
        "filtered_count": len(jobs)
    }


@app.get("/report/{job_id}")
async def get_report(job_id: str):
    """Grouped report of a completed job, one object per demographic group."""
    job = _get_completed_job(job_id)
    results = job['results']

    if 'report' in results:
        rows = results['report']
    else:
        report_file = results.get('saved_files', {}).get('report')
        if not report_file or not Path(report_file).exists():
            raise HTTPException(status_code=404, detail="Report file not found on disk")
        report = pd.read_csv(report_file)
        rows = report.astype(object).where(report.notna(), None).to_dict(orient='records')

    return {"job_id": job_id, "rows": rows, "row_count": len(rows)}


@app.get("/download/{job_id}")
async def download_results(job_id: str, file_type: str = Query(..., description="report, summary or data_dictionary")):
    """
    Download an output file of a completed job.

    Args:
        job_id: Unique job identifier
        file_type: Type of file to download

    Returns:
        FileResponse: The requested file
    """
    job = _get_completed_job(job_id)

    saved_files = job['results'].get('saved_files', {})
    if file_type not in saved_files:
        raise HTTPException(
            status_code=404,
            detail=f"File type '{file_type}' not found. Available types: {list(saved_files.keys())}"
        )

    file_path = Path(saved_files[file_type])
    if not file_path.exists():
        raise HTTPException(status_code=404, detail="File not found on disk")

    return FileResponse(
        path=file_path,
        filename=f"{job_id}_{file_path.name}",
        media_type='application/octet-stream'
    )


@app.delete("/jobs/{job_id}")
async def delete_job(job_id: str):
    """Delete a job and its associated files."""
    if job_id not in job_status:
        raise HTTPException(status_code=404, detail=JOB_NOT_FOUND_MSG)

    job = job_status[job_id]

    try:
        input_file = Path(job['input_file']) if job.get('input_file') else None
        if input_file and input_file.exists():
            input_file.unlink()

        output_dir = Path(job['output_dir'])
        if output_dir.exists():
            shutil.rmtree(output_dir)
    except OSError as e:
        logger.error(f"Failed to delete job {job_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to delete job: {str(e)}")

    del job_status[job_id]
    persist_job_status()

    logger.info(f"Deleted job {job_id} and associated files")
    return {"message": f"Job {job_id} and associated files deleted successfully"}


def start_server(host: str = "0.0.0.0", port: int = config.API_PORT, reload: bool = False):
    """Start the API server."""
    logger.info(f"Starting Time Usage Pipeline API on {host}:{port}")
    uvicorn.run("api_server:app", host=host, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    start_server()
