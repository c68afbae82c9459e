"""OpenAPI协议处理 / OpenAPI Protocol Handler

处理OpenAPI规范的工具解析与调用，并提供统一的 ApiSet 调用入口。
Handles tool parsing and invocation for OpenAPI specification, and provides
the unified ApiSet entry point.
"""

from copy import deepcopy
import json
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote

import httpx
from pydash import get as pg
import yaml

from agentrun_toolset.utils.config import Config
from agentrun_toolset.utils.exception import ToolNotFoundError
from agentrun_toolset.utils.helper import to_native
from agentrun_toolset.utils.log import logger

from ..model import ObjectSchema, StringSchema, ToolInfo, ToolSchema
from .invoker import MCPToolInvoker, ToolInvoker
from .refs import resolve_refs


class ApiSet:
    """统一的工具集接口，支持 OpenAPI 和 MCP 工具"""

    def __init__(
        self,
        tools: Sequence[ToolInfo],
        invoker: ToolInvoker,
        config: Optional[Config] = None,
    ):
        if not isinstance(invoker, ToolInvoker):
            raise TypeError(
                "invoker must be a ToolInvoker, got"
                f" {type(invoker).__name__}"
            )

        self._tools: Dict[str, ToolInfo] = {}
        for tool in tools:
            if not tool.name:
                continue
            if tool.name in self._tools:
                logger.debug("Duplicated tool '%s' ignored", tool.name)
                continue
            self._tools[tool.name] = tool

        self._invoker = invoker
        self._base_config = config

    async def invoke(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Any:
        """调用指定的工具"""
        if name not in self._tools:
            raise ToolNotFoundError(name)

        # 先将 arguments 中的不可序列化类型转换为原生 python 类型
        native_arguments = to_native(arguments) if arguments else {}

        # 合并配置：传入的 config 覆盖 base_config
        effective_config = Config.with_configs(self._base_config, config)

        return await self._invoker.invoke_tool_async(
            name, native_arguments, effective_config
        )

    def tools(self) -> List[ToolInfo]:
        """返回所有工具列表"""
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolInfo]:
        """获取指定名称的工具"""
        return self._tools.get(name)

    def to_json_schema(self) -> List[Dict[str, Any]]:
        """返回所有工具的 JSON Schema 描述，用于提供给 LLM"""
        return [tool.to_json_schema() for tool in self._tools.values()]

    @classmethod
    def from_openapi_schema(
        cls,
        schema: Union[str, bytes, dict],
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
        timeout: Optional[int] = None,
    ) -> "ApiSet":
        """从 OpenAPI schema 创建 ApiSet

        Args:
            schema: OpenAPI schema (JSON/YAML 字符串或字典)
            base_url: 基础 URL，优先于 schema 中的 servers
            headers: 默认请求头
            query_params: 默认查询参数
            config: 配置对象
            timeout: 超时时间
        """
        openapi_client = OpenAPI(
            schema=schema,
            base_url=base_url,
            headers=headers,
            query_params=query_params,
            config=config,
            timeout=timeout,
        )

        return cls(
            tools=openapi_client.tools,
            invoker=openapi_client,
            config=config,
        )

    @classmethod
    def from_mcp_tools(
        cls,
        tools: Any,
        mcp_client: Any,
        config: Optional[Config] = None,
    ) -> "ApiSet":
        """从 MCP tools 创建 ApiSet

        单个工具解析失败只记录警告并跳过，不影响其他工具。

        Args:
            tools: MCP tools 列表或单个工具
            mcp_client: MCP 客户端（MCPToolSet 实例）
            config: 配置对象
        """
        return cls(
            tools=ToolInfo.from_mcp_tools(tools),
            invoker=MCPToolInvoker(mcp_client, config),
            config=config,
        )


class OpenAPI(ToolInvoker):
    """OpenAPI schema based tool client."""

    _SUPPORTED_METHODS = {
        "DELETE",
        "GET",
        "HEAD",
        "OPTIONS",
        "PATCH",
        "POST",
        "PUT",
    }
    _BODY_METHODS = {"PATCH", "POST", "PUT"}
    _DEFAULT_TIMEOUT = 60

    def __init__(
        self,
        schema: Any,
        base_url: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        query_params: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
        timeout: Optional[int] = None,
    ):
        self._raw_schema = schema if schema is not None else ""
        # Resolve local $ref (e.g. "#/components/schemas/...") before the
        # catalog is built. Works on a copy of the caller's document.
        self._schema = resolve_refs(self._load_schema(self._raw_schema))
        self._operations, self._tools = self._build_catalog(self._schema)
        self._base_url_override = base_url
        self._document_base_url = self._extract_base_url(self._schema) or ""
        self._default_headers = headers.copy() if headers else {}
        self._default_query_params = query_params.copy() if query_params else {}
        self._base_config = config
        self._timeout = timeout

    @property
    def schema(self) -> Dict[str, Any]:
        """$ref 已解析的 schema"""
        return self._schema

    @property
    def base_url(self) -> str:
        return self._base_url_override or self._document_base_url

    @property
    def tools(self) -> List[ToolInfo]:
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolInfo]:
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        return name in self._operations

    def list_tools(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """List operation metadata defined in the OpenAPI schema.

        Args:
            name: OperationId of the tool. When provided, return the single
                operation; otherwise return all operations.

        Returns:
            A list of operation metadata dictionaries.
        """

        if name:
            if name not in self._operations:
                raise ToolNotFoundError(name)
            return [deepcopy(self._operations[name])]

        return [deepcopy(item) for item in self._operations.values()]

    async def invoke_tool_async(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        config: Optional[Config] = None,
    ) -> Dict[str, Any]:
        """调用 OpenAPI 工具

        网络层错误（DNS、连接失败、超时等）不会抛出，而是返回
        ``{"status_code": 0, "error": ...}``。只有工具不存在时抛出异常。
        """
        if name not in self._operations:
            raise ToolNotFoundError(name)

        request_kwargs, timeout = self._prepare_request(name, arguments, config)
        logger.debug(
            "Invoke OpenAPI tool %s: %s %s",
            name,
            request_kwargs["method"],
            request_kwargs["url"],
        )

        read_timeout = Config.with_configs(
            self._base_config, config
        ).get_read_timeout()

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(timeout, read=read_timeout or timeout)
            ) as client:
                response = await client.request(**request_kwargs)
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            # 非 ASCII 的请求头值无法编码，按网络层错误处理
            logger.warning("Invoke OpenAPI tool %s failed: %s", name, e)
            return {
                "status_code": 0,
                "error": str(e) or type(e).__name__,
            }

        return self._format_response(response)

    def _load_schema(self, schema: Any) -> Dict[str, Any]:
        if isinstance(schema, dict):
            return schema

        if isinstance(schema, (bytes, bytearray)):
            schema = schema.decode("utf-8")

        if not schema:
            raise ValueError("OpenAPI schema detail is required.")

        try:
            loaded = json.loads(schema)
        except json.JSONDecodeError:
            try:
                loaded = yaml.safe_load(schema)
            except yaml.YAMLError as exc:
                raise ValueError("Invalid OpenAPI schema content.") from exc

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(
                "Invalid OpenAPI schema content: expected an object, got"
                f" {type(loaded).__name__}."
            )
        return loaded

    def _extract_base_url(self, schema: Dict[str, Any]) -> Optional[str]:
        servers = schema.get("servers") or []
        return self._pick_server_url(servers)

    def _pick_server_url(self, servers: Any) -> Optional[str]:
        if not servers:
            return None

        if isinstance(servers, dict):
            servers = [servers]

        if not isinstance(servers, list):
            return None

        for server in servers:
            if isinstance(server, str):
                return server
            if not isinstance(server, dict):
                continue
            url = server.get("url")
            if not url:
                continue
            variables = server.get("variables", {})
            if isinstance(variables, dict):
                for key, meta in variables.items():
                    default = (
                        meta.get("default") if isinstance(meta, dict) else None
                    )
                    if default is not None:
                        url = url.replace(f"{{{key}}}", str(default))
            return url

        return None

    def _build_catalog(
        self, schema: Dict[str, Any]
    ) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, ToolInfo]]:
        operations: Dict[str, Dict[str, Any]] = {}
        tools: Dict[str, ToolInfo] = {}

        paths = schema.get("paths") or {}
        if not isinstance(paths, dict):
            return operations, tools

        for path, path_item in paths.items():
            if not isinstance(path_item, dict):
                continue
            path_parameters = path_item.get("parameters", [])
            path_servers = path_item.get("servers")
            for method, operation in path_item.items():
                if method.upper() not in self._SUPPORTED_METHODS:
                    continue
                if not isinstance(operation, dict):
                    continue
                operation_id = operation.get("operationId")
                if not operation_id:
                    logger.debug(
                        "Skip operation %s %s without operationId",
                        method.upper(),
                        path,
                    )
                    continue
                if operation_id in operations:
                    logger.debug(
                        "Duplicated operationId '%s', the later one wins",
                        operation_id,
                    )

                parameters = self._merge_parameters(
                    path_parameters, operation.get("parameters", [])
                )
                request_body = operation.get("requestBody")
                operations[operation_id] = {
                    "operationId": operation_id,
                    "method": method.upper(),
                    "path": path,
                    "summary": operation.get("summary"),
                    "description": operation.get("description"),
                    "parameters": parameters,
                    "path_parameters": self._parameter_names(
                        parameters, "path"
                    ),
                    "header_parameters": self._parameter_names(
                        parameters, "header"
                    ),
                    "request_body": request_body,
                    "responses": operation.get("responses"),
                    "tags": operation.get("tags", []),
                    "server_url": self._pick_server_url(
                        operation.get("servers") or path_servers
                    ),
                }
                tools[operation_id] = ToolInfo(
                    name=operation_id,
                    description=operation.get("summary")
                    or operation.get("description")
                    or None,
                    parameters=self._build_parameters_schema(
                        parameters, request_body
                    ),
                )
        return operations, tools

    def _merge_parameters(
        self, path_parameters: Any, operation_parameters: Any
    ) -> List[Dict[str, Any]]:
        """合并路径级别和操作级别的参数，(name, in) 相同时操作级别优先"""
        merged: Dict[Tuple[Any, Any], Dict[str, Any]] = {}
        for params in (path_parameters, operation_parameters):
            if not isinstance(params, list):
                continue
            for param in params:
                if not isinstance(param, dict) or not param.get("name"):
                    continue
                merged[(param.get("name"), param.get("in"))] = param
        return list(merged.values())

    def _parameter_names(
        self, parameters: List[Dict[str, Any]], location: str
    ) -> List[str]:
        return [
            param["name"] for param in parameters if param.get("in") == location
        ]

    def _build_parameters_schema(
        self,
        parameters: List[Dict[str, Any]],
        request_body: Any,
    ) -> ToolSchema:
        """将参数和 requestBody 组装为一个 object 类型的 schema

        参数位置（path/query/header）不写入 schema，调用时根据路径模板等重新推断。
        """
        properties: Dict[str, ToolSchema] = {}
        required: List[str] = []

        for param in parameters:
            name = param["name"]
            param_schema = param.get("schema")
            prop = (
                ToolSchema.from_any_openapi_schema(param_schema)
                if isinstance(param_schema, dict)
                else StringSchema(type="string")
            )
            if param.get("description"):
                prop.description = param["description"]
            properties[name] = prop
            if param.get("required") is True and name not in required:
                required.append(name)

        body_schema = self._json_body_schema(request_body)
        if body_schema is not None:
            properties["body"] = ToolSchema.from_any_openapi_schema(body_schema)
            if pg(request_body, "required") is True and "body" not in required:
                required.append("body")

        return ObjectSchema(
            type="object",
            properties=properties,
            required=required,
        )

    def _json_body_schema(self, request_body: Any) -> Optional[Dict[str, Any]]:
        content = pg(request_body, "content")
        if not isinstance(content, dict):
            return None
        for content_type, media in content.items():
            media_type = str(content_type).split(";")[0].strip().lower()
            if media_type != "application/json":
                continue
            schema = pg(media, "schema")
            if isinstance(schema, dict):
                return schema
        return None

    def _prepare_request(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]],
        config: Optional[Config],
    ) -> Tuple[Dict[str, Any], float]:
        operation = self._operations[name]
        args = arguments or {}

        effective_config = Config.with_configs(self._base_config, config)
        headers: Dict[str, str] = {}
        headers.update(effective_config.get_headers())
        headers.update(self._default_headers)

        method = operation["method"]
        path = operation["path"]
        header_parameters = operation["header_parameters"]
        query_params: Dict[str, Any] = {}
        body = None

        # 参数路由: body > path 模板 > header > query
        for key, value in args.items():
            placeholder = f"{{{key}}}"
            if key == "body":
                body = value
            elif placeholder in path:
                path = path.replace(
                    placeholder, quote(self._stringify(value), safe="")
                )
            elif key in header_parameters and value is not None:
                headers[key] = self._stringify(value)
            elif isinstance(value, str) and key.lower().startswith("x-"):
                headers[key] = value
            else:
                query_params[key] = value

        # 调用参数覆盖默认值，值为 None 的参数不发送
        query_params = {
            k: v
            for k, v in {**self._default_query_params, **query_params}.items()
            if v is not None
        }

        url = self._join_url(
            self._base_url_override
            or operation.get("server_url")
            or self._document_base_url,
            path,
        )

        request_kwargs: Dict[str, Any] = {
            "method": method,
            "url": url,
            "headers": headers,
        }

        if query_params:
            request_kwargs["params"] = self._encode_query(query_params)
        if body is not None:
            if method in self._BODY_METHODS:
                request_kwargs["json"] = body
            else:
                logger.debug(
                    "Body ignored for %s request of OpenAPI tool '%s'",
                    method,
                    name,
                )

        return request_kwargs, self._resolve_timeout(config)

    def _resolve_timeout(self, config: Optional[Config]) -> float:
        return (
            (config.get_timeout() if config else None)
            or self._timeout
            or (self._base_config.get_timeout() if self._base_config else None)
            or self._DEFAULT_TIMEOUT
        )

    def _format_response(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = response.text

        return {
            "status_code": response.status_code,
            "headers": dict(response.headers),
            "body": body,
            "raw_body": response.text,
            "url": str(response.request.url),
            "method": response.request.method,
        }

    def _encode_query(self, params: Dict[str, Any]) -> Dict[str, Any]:
        encoded: Dict[str, Any] = {}
        for key, value in params.items():
            if isinstance(value, list):
                encoded[key] = [
                    self._encode_query_value(v) for v in value if v is not None
                ]
            else:
                encoded[key] = self._encode_query_value(value)
        return encoded

    def _encode_query_value(self, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value, ensure_ascii=False)
        return value

    def _stringify(self, value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def _join_url(self, base_url: str, path: str) -> str:
        if not base_url:
            return path
        if not path:
            return base_url
        return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
