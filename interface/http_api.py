"""
Nitya Proxy - HTTP API
Flask-based REST API for the chat frontend
"""

import threading
from typing import Optional, TYPE_CHECKING

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename

from agency.tools.errors import ResourceNotFoundError, ToolValidationError
from core.logger import log_info, log_error
from interface.chat_handler import ChatRequestError
from llm.errors import OrchestrationCancelled, UpstreamError
from memory.prospect_store import is_safe_segment

if TYPE_CHECKING:
    from core.services import ServiceContainer

CHAT_FAILURE_MESSAGE = "Failed to process chat message"


def create_app(services: "ServiceContainer") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)

    def failure(message: str, error: Exception, status: int = 500):
        """Generic error envelope; details only in debug mode."""
        body = {"error": message}
        if services.debug:
            body["details"] = str(error)
        return jsonify(body), status

    @app.route("/health", methods=["GET"])
    def health():
        """Health check endpoint."""
        return jsonify({
            "status": "healthy",
            "service": "nitya-proxy",
            "tools": services.registry.names()
        })

    @app.route("/api/chat", methods=["POST"])
    def chat():
        """
        Send the conversation and get Claude's reply.

        Request body:
        {
            "messages": [{"role": "user", "content": "..."}],
            "userId": "Optional prospect id (defaults to test_user_001)"
        }

        Returns the completion API response verbatim.
        """
        data = request.get_json(silent=True)
        try:
            result = services.chat_handler.handle(data)
            return jsonify(result.final_response.to_dict())

        except ChatRequestError as e:
            return jsonify({"error": e.message}), 400
        except UpstreamError as e:
            log_error(f"Chat upstream failure: {e.message}")
            return failure(CHAT_FAILURE_MESSAGE, e, 502)
        except OrchestrationCancelled as e:
            log_error(f"Chat cancelled: {e.message}")
            return failure(CHAT_FAILURE_MESSAGE, e, 503)
        except TimeoutError as e:
            log_error(f"Chat busy: {e}")
            return failure(CHAT_FAILURE_MESSAGE, e, 503)
        except Exception as e:
            log_error(f"Chat error: {e}")
            return failure(CHAT_FAILURE_MESSAGE, e, 500)

    @app.route("/api/session/<user_id>", methods=["GET"])
    def get_session(user_id: str):
        """Session info (new vs resumed) for a prospect."""
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400
        try:
            return jsonify({"success": True, "session": services.sessions.get_session_context(user_id)})
        except Exception as e:
            log_error(f"Error getting session: {e}")
            return jsonify({"error": str(e)}), 500

    @app.route("/api/get-conversation/<user_id>", methods=["GET"])
    def get_conversation(user_id: str):
        """Saved conversation including approved sections."""
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400
        try:
            conversation = services.store.load_conversation(user_id)
            return jsonify({"success": True, "conversation": conversation})
        except Exception as e:
            log_error(f"Error getting conversation: {e}")
            return jsonify({"error": str(e)}), 500

    @app.route("/api/save-conversation", methods=["POST"])
    def save_conversation():
        """
        Save chat history and/or an approved section.

        Request body:
        {
            "userId": "prospect id",
            "messages": [...],
            "approvedSection": {"section": "hero", "html": "<section>...</section>"}
        }
        """
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        if not user_id:
            return jsonify({"error": "userId required"}), 400
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400

        messages = data.get("messages")
        if messages is not None and not isinstance(messages, list):
            return jsonify({"error": "messages must be an array"}), 400

        try:
            with services.locks.acquire(user_id):
                conversation = services.store.save_conversation(
                    user_id,
                    messages=messages,
                    approved_section=data.get("approvedSection")
                )
            services.sessions.clear_cache(user_id)
            return jsonify({"success": True, "messageCount": conversation.get("messageCount", 0)})
        except Exception as e:
            log_error(f"Error saving conversation: {e}")
            return jsonify({"error": str(e)}), 500

    @app.route("/api/update-sitemap", methods=["POST"])
    def update_sitemap():
        """Replace the sitemap: {"userId": "...", "pages": ["Home", "About Us"]}."""
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        pages = data.get("pages")
        if not user_id or not pages:
            return jsonify({"error": "userId and pages required"}), 400
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400
        if not isinstance(pages, list) or not all(isinstance(p, str) for p in pages):
            return jsonify({"error": "pages must be an array of names"}), 400

        try:
            with services.locks.acquire(user_id):
                sitemap = services.store.write_sitemap(user_id, pages)
            return jsonify({"success": True, "sitemap": sitemap})
        except Exception as e:
            log_error(f"Error updating sitemap: {e}")
            return jsonify({"error": str(e)}), 500

    @app.route("/api/update-metadata", methods=["POST"])
    def update_metadata():
        """Merge business data: {"userId": "...", "data": {"businessName": "..."}}."""
        data = request.get_json(silent=True) or {}
        user_id = data.get("userId")
        updates = data.get("data")
        if not user_id or not updates:
            return jsonify({"error": "userId and data required"}), 400
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400
        if not isinstance(updates, dict):
            return jsonify({"error": "data must be an object"}), 400

        try:
            with services.locks.acquire(user_id):
                metadata = services.store.update_metadata(user_id, updates)
            return jsonify({"success": True, "metadata": metadata})
        except Exception as e:
            log_error(f"Error updating metadata: {e}")
            return jsonify({"error": str(e)}), 500

    @app.route("/api/list-assets/<user_id>", methods=["GET"])
    def list_assets(user_id: str):
        """Uploaded image filenames, sorted."""
        if not is_safe_segment(user_id):
            return jsonify({"error": "Invalid userId"}), 400
        try:
            files = services.store.list_assets(user_id)
        except ResourceNotFoundError:
            files = []
        except Exception as e:
            log_error(f"List assets error: {e}")
            return jsonify({"success": False, "error": str(e)}), 500
        return jsonify({"success": True, "files": files})

    @app.route("/api/upload/<user_id>", methods=["POST"])
    def upload(user_id: str):
        """Upload one image (multipart field "file")."""
        if not is_safe_segment(user_id):
            return jsonify({"success": False, "error": "Invalid userId"}), 400

        file = request.files.get("file")
        if file is None or not file.filename:
            return jsonify({"success": False, "error": "No file provided"}), 400
        if not (file.mimetype or "").startswith("image/"):
            return jsonify({"success": False, "error": "Only images allowed"}), 400

        filename = secure_filename(file.filename)
        if not filename:
            return jsonify({"success": False, "error": "Invalid filename"}), 400

        content = file.read(services.upload_max_bytes + 1)
        if len(content) > services.upload_max_bytes:
            return jsonify({"success": False, "error": "File too large"}), 413

        try:
            with services.locks.acquire(user_id):
                url = services.store.save_asset(user_id, filename, content)
            return jsonify({"success": True, "url": url, "filename": filename})
        except ToolValidationError as e:
            return jsonify({"success": False, "error": e.message}), 400
        except Exception as e:
            log_error(f"Upload error: {e}")
            return jsonify({"success": False, "error": str(e)}), 500

    @app.route("/api/delete/<user_id>/<path:filename>", methods=["DELETE"])
    def delete_asset(user_id: str, filename: str):
        """Delete an uploaded file."""
        if not is_safe_segment(user_id):
            return jsonify({"success": False, "error": "Invalid userId"}), 400
        try:
            with services.locks.acquire(user_id):
                services.store.delete_asset(user_id, filename)
            return jsonify({"success": True, "filename": filename})
        except ResourceNotFoundError:
            return jsonify({"success": False, "error": "File not found"}), 404
        except Exception as e:
            log_error(f"Delete error: {e}")
            return jsonify({"success": False, "error": str(e)}), 500

    return app


class HTTPServer:
    """
    HTTP server manager.

    Runs Flask in a background thread.
    """

    def __init__(self, services: "ServiceContainer", host: str = "127.0.0.1", port: int = 3000):
        self.host = host
        self.port = port
        self._services = services
        self._app: Optional[Flask] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def app(self) -> Flask:
        if self._app is None:
            self._app = create_app(self._services)
        return self._app

    def start(self) -> None:
        """Start the HTTP server in a background thread."""
        self._thread = threading.Thread(
            target=self._run_server,
            daemon=True,
            name="HTTPServer"
        )
        self._thread.start()

        log_info(f"HTTP API started on http://{self.host}:{self.port}", prefix="🌐")

    def _run_server(self) -> None:
        """Run the Flask server."""
        # Suppress Flask's default logging
        import logging
        log = logging.getLogger('werkzeug')
        log.setLevel(logging.ERROR)

        self.app.run(
            host=self.host,
            port=self.port,
            debug=False,
            use_reloader=False,
            threaded=True
        )

    def join(self, timeout: Optional[float] = None) -> None:
        """Block until the server thread exits."""
        if self._thread is not None:
            self._thread.join(timeout)

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
