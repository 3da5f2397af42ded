"""浏览器界面的本地 HTTP 服务。"""

from __future__ import annotations

import json
import logging
import tempfile
import webbrowser
from pathlib import Path
from typing import Any, Optional

from flask import Flask, jsonify, request, send_from_directory
from werkzeug.datastructures import FileStorage
from werkzeug.serving import make_server

from pulp_image.core.config import ProcessingConfig, ServerConfig
from pulp_image.core.exceptions import InvalidConfigurationError, PulpImageError, friendly_message_for
from pulp_image.core.formats import is_supported_input_extension
from pulp_image.core.models import FailureRecord, JobResult
from pulp_image.core.version import __version__
from pulp_image.processing.pipeline import run_job
from pulp_image.utils import system
from pulp_image.utils.paths import default_output_dir, describe_output_path, expand_path

LOGGER = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"
UNSUPPORTED_UPLOAD_TEXT = "不支持的文件类型，仅支持 PNG、JPG、WebP、AVIF。"

PLACEHOLDER_PAGE = """<!DOCTYPE html>
<html lang="zh-CN">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Pulp Image</title>
</head>
<body style="font-family: sans-serif; text-align: center; padding-top: 20vh;">
  <h1>Pulp Image</h1>
  <p>界面正在启动……</p>
</body>
</html>
"""


def create_app(server_config: Optional[ServerConfig] = None) -> Flask:
    """构造 Flask 应用。"""

    config = server_config or ServerConfig(open_browser=False)
    static_dir = Path(config.static_dir) if config.static_dir else STATIC_DIR

    app = Flask(__name__, static_folder=None)
    app.config["PULP_SERVER"] = config

    @app.get("/")
    def index():
        if (static_dir / "index.html").is_file():
            return send_from_directory(static_dir, "index.html")
        return PLACEHOLDER_PAGE

    @app.get("/static/<path:filename>")
    def static_files(filename: str):
        return send_from_directory(static_dir, filename)

    @app.get("/api/version")
    def api_version():
        return jsonify({"version": __version__})

    @app.post("/api/run")
    def api_run():
        uploads = [item for item in request.files.getlist("files") if item and item.filename]
        if not uploads:
            return _error_response("请至少选择一张图片。", 400)

        try:
            options = json.loads(request.form.get("config") or "{}")
        except ValueError:
            return _error_response("配置格式错误。", 400)
        if not isinstance(options, dict):
            return _error_response("配置格式错误。", 400)

        try:
            output_dir = _resolve_output_dir(options, config)
            processing_config = _build_processing_config(options, output_dir)
        except InvalidConfigurationError as exc:
            return _error_response(str(exc), 400)

        with tempfile.TemporaryDirectory(prefix="pulp-image-") as workdir:
            staged, rejected = _stage_uploads(uploads, Path(workdir))
            result = JobResult()
            if staged:
                try:
                    result = run_job(Path(workdir), processing_config)
                except PulpImageError as exc:
                    LOGGER.error("处理失败：%s", exc)
                    return _error_response(exc.friendly_message(), 500)

        payload = _present_result(result, staged, rejected)
        payload["outputPath"] = str(output_dir)
        return jsonify(payload)

    @app.post("/api/resolve-output-path")
    def api_resolve_output_path():
        body = request.get_json(silent=True) or {}
        if body.get("useDefault") or not body.get("path"):
            path = default_output_dir(config.results_root, body.get("timestamp"))
        else:
            path = expand_path(str(body["path"]))
        return jsonify({"path": str(path)})

    @app.post("/api/validate-output-path")
    def api_validate_output_path():
        body = request.get_json(silent=True) or {}
        raw = str(body.get("path") or "").strip()
        if not raw:
            return _error_response("请输入输出目录。", 400)
        return jsonify(describe_output_path(raw))

    @app.post("/api/open-folder")
    def api_open_folder():
        body = request.get_json(silent=True) or {}
        raw = str(body.get("path") or "").strip()
        if not raw:
            return jsonify({"success": False, "error": "缺少目录路径。", "path": None}), 400

        path = expand_path(raw)
        if not path.is_dir():
            return jsonify({"success": False, "error": "目录不存在。", "path": str(path)}), 404
        if not system.open_folder(path):
            return jsonify({"success": False, "error": "无法自动打开目录。", "path": str(path)}), 500
        return jsonify({"success": True, "path": str(path)})

    return app


def _error_response(message: str, status: int):
    return jsonify({"error": message, "message": message}), status


def _resolve_output_dir(options: dict[str, Any], config: ServerConfig) -> Path:
    out = options.get("out")
    if options.get("useDefaultOutput") or not out:
        return default_output_dir(config.results_root, options.get("timestamp"))
    return expand_path(str(out))


def _build_processing_config(options: dict[str, Any], output_dir: Path) -> ProcessingConfig:
    try:
        return ProcessingConfig.from_options(
            out=output_dir,
            width=_optional_int(options.get("width"), "width"),
            height=_optional_int(options.get("height"), "height"),
            format=options.get("format") or None,
            rename_pattern=options.get("renamePattern"),
            suffix=options.get("suffix"),
            auto_suffix=bool(options.get("autoSuffix")),
            quality=_optional_int(options.get("quality"), "quality"),
            lossless=bool(options.get("lossless")),
            background=options.get("background"),
            alpha_mode=options.get("alphaMode"),
            overwrite=bool(options.get("overwrite")),
            # 浏览器上传的是副本，删除原文件没有意义
            delete_original=False,
        )
    except (TypeError, AttributeError) as exc:
        raise InvalidConfigurationError(f"配置格式错误: {exc}") from exc


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigurationError(f"{name} 必须为整数: {value}") from exc


def _stage_uploads(uploads: list[FileStorage], workdir: Path) -> tuple[dict[str, str], list[str]]:
    """把上传文件写入临时目录，返回 {临时文件名: 原文件名} 与被拒绝的文件名。"""

    staged: dict[str, str] = {}
    rejected: list[str] = []
    for upload in uploads:
        # 保留原文件名（含非 ASCII 字符），只去掉目录部分
        original_name = Path((upload.filename or "").replace("\\", "/")).name
        if original_name in {"", ".", ".."} or not is_supported_input_extension(Path(original_name).suffix):
            rejected.append(original_name)
            continue

        candidate = original_name
        stem, suffix = Path(original_name).stem, Path(original_name).suffix
        counter = 1
        while candidate in staged:
            candidate = f"{stem}_{counter}{suffix}"
            counter += 1

        upload.save(workdir / candidate)
        staged[candidate] = original_name
    return staged, rejected


def _present_result(result: JobResult, staged: dict[str, str], rejected: list[str]) -> dict[str, Any]:
    """转换为界面所需的 JSON：路径使用原文件名，错误使用友好提示。"""

    payload = result.to_dict()

    def original_name(path: str) -> str:
        name = Path(path).name
        return staged.get(name, name)

    for item in payload["processed"]:
        item["inputPath"] = original_name(item["inputPath"])
    for item in payload["skipped"]:
        item["filePath"] = original_name(item["filePath"])
        item["reason"] = friendly_message_for(item["kind"])
    for item in payload["failed"]:
        item["filePath"] = original_name(item["filePath"])
        item["error"] = friendly_message_for(item["kind"])

    for name in rejected:
        record = FailureRecord(file_path=Path(name), error=UNSUPPORTED_UPLOAD_TEXT, kind="unsupported-format")
        payload["failed"].append(record.to_dict())

    payload["totals"]["failedCount"] = len(payload["failed"])
    return payload


def start_ui_server(config: ServerConfig) -> None:
    """启动服务并（可选）打开浏览器，直到 Ctrl+C 退出。"""

    app = create_app(config)
    try:
        server = make_server(config.host, config.port, app, threaded=True)
    except OSError as exc:
        raise PulpImageError(f"端口 {config.port} 已被占用或无法监听，请换一个端口。({exc})") from exc

    url = f"http://{config.host}:{config.port}"
    LOGGER.info("界面服务已启动：%s", url)

    if config.open_browser:
        try:
            opened = webbrowser.open(url)
        except webbrowser.Error as exc:
            LOGGER.warning("无法自动打开浏览器: %s", exc)
            opened = False
        if not opened:
            LOGGER.warning("请手动在浏览器中打开 %s", url)

    try:
        server.serve_forever()
    finally:
        server.server_close()
