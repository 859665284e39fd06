"""Language client: one language server process spoken to over stdio."""

import asyncio
import os
import subprocess
from concurrent.futures import Future
from typing import IO, Any, Callable, Dict, List, Optional, Sequence, Set

from pylsp_jsonrpc import streams
from pylsp_jsonrpc.endpoint import Endpoint
from pylsp_jsonrpc.exceptions import JsonRpcException

from ..document import Document
from ..util.error import LSPError
from ..util.log import Log
from .language import DocumentFilter, matches


class LanguageClient:
    """JSON-RPC connection to a language server started from ``command``.

    Message framing and request bookkeeping are done by ``pylsp_jsonrpc``;
    the server's stdout is read on an executor thread and every message is
    handed back to the event loop before it reaches the endpoint.
    """
    
    def __init__(
        self,
        client_id: str,
        name: str,
        command: List[str],
        document_selector: Sequence[DocumentFilter],
        cwd: Optional[str] = None,
        start_timeout: float = 10.0,
        stop_timeout: float = 5.0,
    ):
        self.client_id = client_id
        self.name = name
        self.command = command
        self.document_selector = list(document_selector)
        self.cwd = cwd
        self.start_timeout = start_timeout
        self.stop_timeout = stop_timeout
        
        self.process: Optional[subprocess.Popen] = None
        self.endpoint: Optional[Endpoint] = None
        self.server_capabilities: Dict[str, Any] = {}
        self.opened_documents: Set[str] = set()
        
        self._dispatcher: Dict[str, Callable[[Any], Any]] = {
            "window/logMessage": self._handle_log_message,
            "window/showMessage": self._handle_log_message,
            "window/workDoneProgress/create": lambda params: None,
            "client/registerCapability": lambda params: None,
        }
        self._reader: Optional[streams.JsonRpcStreamReader] = None
        self._writer: Optional[streams.JsonRpcStreamWriter] = None
        self._listener: Optional[asyncio.Future] = None
        self._stderr_drain: Optional[asyncio.Future] = None
        self._initialize_future: Optional[Future] = None
        self._initialized = False
        self._stopped = False
        self._log = Log.create({"service": "lsp.client", "client": client_id})
    
    @property
    def is_running(self) -> bool:
        return (
            self._initialized
            and not self._stopped
            and self.process is not None
            and self.process.poll() is None
        )
    
    def on_notification(self, method: str, handler: Callable[[Any], None]) -> None:
        """Register a handler for a server notification."""
        self._dispatcher[method] = handler
    
    def handles(self, document: Document) -> bool:
        return matches(self.document_selector, document)
    
    async def start(self) -> None:
        """Launch the server and run the initialize handshake.

        Raises:
            LSPError: the process cannot be launched, exits, rejects the
                handshake or does not answer within ``start_timeout``
        """
        if self.process is not None:
            raise LSPError({"command": self.command}, "Language client already started")
        
        self._log.info("Starting language server", {"command": " ".join(self.command)})
        loop = asyncio.get_running_loop()
        
        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
            )
        except (OSError, ValueError) as e:
            self._log.error("Failed to launch language server", {"error": str(e)})
            raise LSPError({"command": self.command}, f"Failed to launch {' '.join(self.command)!r}", e) from e
        
        self._writer = streams.JsonRpcStreamWriter(self.process.stdin)
        self._reader = streams.JsonRpcStreamReader(self.process.stdout)
        self.endpoint = Endpoint(self._dispatcher, self._writer.write)
        
        def consume(message: Dict[str, Any]) -> None:
            loop.call_soon_threadsafe(self._consume, message)
        
        self._listener = loop.run_in_executor(None, self._reader.listen, consume)
        self._stderr_drain = loop.run_in_executor(None, self._drain_stderr, self.process.stderr)
        
        try:
            await self._initialize()
        except LSPError:
            await self.stop()
            raise
        
        self._log.info("Language server started", {"pid": self.process.pid})
    
    async def _initialize(self) -> None:
        init_params = {
            "processId": os.getpid(),
            "clientInfo": {"name": self.name},
            "rootUri": None,
            "capabilities": {
                "textDocument": {
                    "synchronization": {
                        "didOpen": True,
                        "didClose": True,
                    },
                },
                "window": {
                    "workDoneProgress": True,
                },
            },
        }
        
        self._initialize_future = self.endpoint.request("initialize", init_params)
        response = asyncio.wrap_future(self._initialize_future)
        
        done, _ = await asyncio.wait(
            {response, self._listener},
            timeout=self.start_timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        
        if response not in done:
            response.cancel()
            if self._listener in done:
                raise LSPError({"command": self.command}, "Language server exited during startup")
            raise LSPError(
                {"command": self.command, "timeout": self.start_timeout},
                "Language server did not answer the initialize request",
            )
        
        try:
            result = response.result()
        except JsonRpcException as e:
            raise LSPError({"command": self.command}, f"Initialize request failed: {e.message}", e) from e
        
        self.server_capabilities = (result or {}).get("capabilities", {})
        self.endpoint.notify("initialized", {})
        self._initialized = True
    
    async def stop(self) -> None:
        """Shut the server down and release the process.

        Safe to call more than once and while ``start`` is still waiting
        for the handshake.
        """
        if self._stopped:
            return
        self._stopped = True
        
        if self._initialize_future is not None and not self._initialize_future.done():
            self._initialize_future.set_exception(
                LSPError({"command": self.command}, "Language client stopped during startup")
            )
        
        if self.endpoint and self._initialized and self.process.poll() is None:
            try:
                await asyncio.wait_for(
                    asyncio.wrap_future(self.endpoint.request("shutdown")),
                    timeout=self.stop_timeout,
                )
                self.endpoint.notify("exit")
            except (asyncio.TimeoutError, JsonRpcException) as e:
                self._log.warn("Language server did not shut down cleanly", {"error": repr(e)})
        
        if self.process is not None:
            await self._terminate()
        
        if self._listener is not None:
            await self._listener
        if self._stderr_drain is not None:
            await self._stderr_drain
            self.process.stderr.close()

        if self._writer is not None:
            self._writer.close()
        if self._reader is not None:
            self._reader.close()
        if self.endpoint is not None:
            self.endpoint.shutdown()
            self.endpoint = None
        
        self.opened_documents.clear()
        self._log.info("Language server stopped")
    
    async def _terminate(self) -> None:
        if self._initialized and await self._wait(self.stop_timeout):
            return
        if self.process.poll() is None:
            self.process.terminate()
            if await self._wait(self.stop_timeout):
                return
            self.process.kill()
            await asyncio.to_thread(self.process.wait)
    
    async def _wait(self, timeout: float) -> bool:
        try:
            await asyncio.wait_for(asyncio.to_thread(self.process.wait), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
    
    async def open_document(self, document: Document) -> None:
        """Send ``textDocument/didOpen`` for a document this client serves."""
        if not self.is_running or not self.handles(document):
            return
        if document.uri in self.opened_documents:
            return
        
        text = document.text
        if text is None:
            try:
                text = await asyncio.to_thread(self._read_text, document.fs_path)
            except (OSError, TypeError) as e:
                self._log.warn("Failed to read document", {"uri": document.uri, "error": str(e)})
                text = ""
            # stopped or opened elsewhere while reading
            if not self.is_running or document.uri in self.opened_documents:
                return
        
        self.endpoint.notify("textDocument/didOpen", {
            "textDocument": {
                "uri": document.uri,
                "languageId": document.language_id,
                "version": 0,
                "text": text,
            }
        })
        
        self.opened_documents.add(document.uri)
        self._log.info("Opened document", {"uri": document.uri})
    
    @staticmethod
    def _read_text(path: str) -> str:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    
    def _consume(self, message: Dict[str, Any]) -> None:
        if self.endpoint is not None:
            self.endpoint.consume(message)
    
    def _handle_log_message(self, params: Dict[str, Any]) -> None:
        self._log.info("server", {"message": (params or {}).get("message")})
    
    def _drain_stderr(self, stderr: IO[bytes]) -> None:
        for line in iter(stderr.readline, b""):
            self._log.debug("stderr", {"line": line.decode("utf-8", "replace").rstrip()})
