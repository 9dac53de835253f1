"""
Server component for dataroom.

This module provides a FastAPI server exposing the dataset workspace, the
numeric analysis and the language-model proxy.
"""

import logging
import threading
from typing import Any, Dict, List, Optional

import fastapi
import requests
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from dataroom.components.config import Config, ConfigManager
from dataroom.llm.provider import CompletionProvider, UpstreamError
from dataroom.math.dataset import Dataset
from dataroom.math.errors import InvalidColumnError
from dataroom.workspace import Workspace, analyze

# Set up logging
logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"
MARKDOWN_MEDIA_TYPE = "text/markdown; charset=utf-8"


# Define API models
class AskRequest(BaseModel):
    """Raw prompt forwarded to the completion endpoint."""

    prompt: str


class QuestionRequest(BaseModel):
    """Question about the workspace dataset."""

    question: str


class GenerateRequest(BaseModel):
    """Dataset generation request model."""

    prompt: Optional[str] = None
    rows: Optional[Any] = None


class ParamsRequest(BaseModel):
    """Analysis parameters; missing fields keep their current value."""

    x_col: Optional[int] = None
    y_col: Optional[int] = None
    features: Optional[List[int]] = None
    k: Optional[int] = None
    seed: Optional[int] = None
    max_iters: Optional[int] = None
    empty_cluster: Optional[str] = None

    def changes(self) -> Dict[str, Any]:
        return {
            'x_col': self.x_col,
            'y_col': self.y_col,
            'features': self.features,
            'k': self.k,
            'seed': self.seed,
            'max_iters': self.max_iters,
            'empty_cluster': self.empty_cluster,
        }


class AnalyzeRequest(ParamsRequest):
    """Grid plus parameters; the workspace grid is used if ``grid`` is omitted."""

    grid: Optional[List[List[Any]]] = None


class GridRequest(BaseModel):
    """Full grid, header row first."""

    grid: List[List[Any]]


class CellRequest(BaseModel):
    """Single cell edit; row 0 is the header."""

    row: int
    col: int
    value: Any = ""


class RowRequest(BaseModel):
    cells: Optional[List[Any]] = None


class ColumnRequest(BaseModel):
    name: Optional[str] = None


class ResetRequest(BaseModel):
    rows: Optional[int] = None
    cols: Optional[int] = None


class ImportRequest(BaseModel):
    """CSV text to import into the workspace."""

    csv: str


class Server:
    """
    FastAPI server for dataroom.
    """

    def __init__(self,
                 workspace: Workspace,
                 provider: Optional[CompletionProvider] = None,
                 config: Optional[Config] = None):
        """
        Initialize a server.

        Args:
            workspace: Workspace holding the current dataset
            provider: Completion endpoint client
            config: Configuration for the server
        """
        self.workspace = workspace
        self.config = config or ConfigManager.get_config()
        self.provider = provider or CompletionProvider.from_config(self.config)

        # Create FastAPI app
        self.app = FastAPI(
            title="Dataroom API",
            description="API for building, analyzing and asking about small datasets",
            version="0.1.0"
        )

        # Set up CORS
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Set up routes
        self._setup_routes()

        # Set up request validation
        self._setup_validation()

        # Set up error handling
        self._setup_error_handling()

        # Server status
        self._running = False
        self._server_thread = None
        self._uvicorn = None

    def _dataset_payload(self, dataset: Optional[Dataset] = None) -> Dict[str, Any]:
        dataset = dataset if dataset is not None else self.workspace.dataset
        return {
            "grid": dataset.to_rows(),
            "rows": dataset.n_rows,
            "columns": dataset.n_columns,
            "version": self.workspace.version
        }

    def _setup_routes(self) -> None:
        """
        Set up API routes.
        """
        # Health check
        @self.app.get("/health")
        async def health_check():
            return {"status": "ok"}

        # Language model proxy
        @self.app.post("/api/ask")
        def ask(ask_request: AskRequest):
            try:
                return {"text": self.provider.ask(ask_request.prompt)}
            except (UpstreamError, requests.RequestException) as e:
                logger.error(f"Ask failed: {e}")
                return JSONResponse(status_code=500, content={"error": str(e)})

        @self.app.post("/api/generate")
        def generate(generate_request: GenerateRequest):
            try:
                csv_text = self.provider.generate_csv(generate_request.prompt, generate_request.rows)
            except requests.RequestException as e:
                logger.error(f"Generate failed: {e}")
                return JSONResponse(status_code=500, content={"error": str(e)})

            if not self.workspace.import_csv(csv_text):
                logger.warning("Generated CSV has no rows; workspace unchanged")
            return Response(content=csv_text, media_type=CSV_MEDIA_TYPE)

        # Stateless analysis
        @self.app.post("/api/analyze")
        def analyze_grid(analyze_request: AnalyzeRequest):
            if analyze_request.grid is None:
                dataset = self.workspace.dataset
            else:
                dataset = Dataset.from_rows(analyze_request.grid)
            params = self.workspace.params.update(**analyze_request.changes())
            return analyze(dataset, params).to_dict()

        # Workspace dataset
        @self.app.get("/api/dataset")
        async def get_dataset():
            return self._dataset_payload()

        @self.app.put("/api/dataset")
        async def put_dataset(grid_request: GridRequest):
            return self._dataset_payload(self.workspace.replace(Dataset.from_rows(grid_request.grid)))

        @self.app.post("/api/dataset/cell")
        async def set_cell(cell_request: CellRequest):
            dataset = self.workspace.set_cell(cell_request.row, cell_request.col, cell_request.value)
            return self._dataset_payload(dataset)

        @self.app.post("/api/dataset/rows")
        async def add_row(row_request: Optional[RowRequest] = None):
            cells = row_request.cells if row_request else None
            return self._dataset_payload(self.workspace.add_row(cells))

        @self.app.delete("/api/dataset/rows")
        async def delete_row(row: Optional[int] = None):
            return self._dataset_payload(self.workspace.delete_row(row))

        @self.app.post("/api/dataset/columns")
        async def add_column(column_request: Optional[ColumnRequest] = None):
            name = column_request.name if column_request else None
            return self._dataset_payload(self.workspace.add_column(name))

        @self.app.delete("/api/dataset/columns")
        async def delete_column(col: Optional[int] = None):
            return self._dataset_payload(self.workspace.delete_column(col))

        @self.app.post("/api/dataset/reset")
        async def reset(reset_request: Optional[ResetRequest] = None):
            rows = self.config.get('dataset.rows', 8)
            cols = self.config.get('dataset.cols', 4)
            if reset_request is not None:
                rows = reset_request.rows or rows
                cols = reset_request.cols or cols
            return self._dataset_payload(self.workspace.reset(rows, cols))

        @self.app.post("/api/dataset/import")
        async def import_csv(import_request: ImportRequest):
            if not self.workspace.import_csv(import_request.csv):
                return JSONResponse(status_code=400, content={"error": "CSV has no non-blank rows"})
            return self._dataset_payload()

        @self.app.get("/api/dataset/export")
        async def export_csv():
            return PlainTextResponse(
                self.workspace.export_csv(),
                media_type=CSV_MEDIA_TYPE,
                headers={"Content-Disposition": 'attachment; filename="dataset.csv"'}
            )

        @self.app.get("/api/dataset/params")
        async def get_params():
            return self.workspace.params.to_dict()

        @self.app.put("/api/dataset/params")
        async def set_params(params_request: ParamsRequest):
            return self.workspace.set_params(**params_request.changes()).to_dict()

        @self.app.get("/api/dataset/analysis")
        def get_analysis():
            return self.workspace.analysis().to_dict()

        @self.app.get("/api/dataset/report")
        def get_report():
            return PlainTextResponse(
                self.workspace.report(),
                media_type=MARKDOWN_MEDIA_TYPE,
                headers={"Content-Disposition": 'attachment; filename="report.md"'}
            )

        @self.app.post("/api/dataset/ask")
        def ask_dataset(question_request: QuestionRequest):
            prompt = self.workspace.ask_prompt(question_request.question)
            try:
                return {"text": self.provider.ask(prompt)}
            except (UpstreamError, requests.RequestException) as e:
                logger.error(f"Ask failed: {e}")
                return JSONResponse(status_code=500, content={"error": str(e)})

    def _setup_validation(self) -> None:
        """
        Set up request validation.
        """
        @self.app.exception_handler(fastapi.exceptions.RequestValidationError)
        async def validation_exception_handler(request, exc):
            return JSONResponse(
                status_code=422,
                content={"detail": str(exc)}
            )

    def _setup_error_handling(self) -> None:
        """
        Set up error handling.
        """
        @self.app.exception_handler(InvalidColumnError)
        async def invalid_column_handler(request, exc):
            return JSONResponse(
                status_code=400,
                content={"error": str(exc)}
            )

        @self.app.exception_handler(IndexError)
        async def index_error_handler(request, exc):
            return JSONResponse(
                status_code=400,
                content={"error": str(exc)}
            )

        @self.app.exception_handler(ValueError)
        async def value_error_handler(request, exc):
            return JSONResponse(
                status_code=400,
                content={"error": str(exc)}
            )

        @self.app.exception_handler(Exception)
        async def generic_exception_handler(request, exc):
            logger.exception("Unhandled exception")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"}
            )

    def start(self) -> None:
        """
        Start the server.
        """
        if self._running:
            return

        # Import uvicorn here to avoid circular imports
        import uvicorn
        self._uvicorn = uvicorn

        # Get port and host
        port = self.config.get('server.port', 8080)
        host = self.config.get('server.host', 'localhost')

        # Start in a separate thread
        def run_server():
            self._uvicorn.run(
                self.app,
                host=host,
                port=port,
                log_level=self.config.get('logging.level', 'info')
            )

        self._server_thread = threading.Thread(
            target=run_server,
            daemon=True
        )
        self._server_thread.start()

        self._running = True

        logger.info(f"Server started at http://{host}:{port}")

    def stop(self) -> None:
        """
        Stop the server.
        """
        if not self._running:
            return

        # The uvicorn thread is a daemon and ends with the process
        self._running = False

        logger.info("Server stopping (full shutdown requires process restart)")


class ServerManager:
    """
    Singleton manager for the server.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_server(cls,
                   workspace: Workspace,
                   provider: Optional[CompletionProvider] = None,
                   config: Optional[Config] = None) -> Server:
        """
        Get the server instance.

        Args:
            workspace: Workspace holding the current dataset
            provider: Completion endpoint client
            config: Configuration

        Returns:
            Server instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Server(workspace, provider, config)

            return cls._instance

    @classmethod
    def shutdown(cls) -> None:
        """
        Shut down the server.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.stop()
                cls._instance = None
