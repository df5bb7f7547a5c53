"""函数调用（Function Calling）数据结构定义。

这些 dataclass 描述了“可被后端请求调用的函数”的 schema：
- 向模型声明可用函数（FunctionDef / FunctionParam）。
- 保存模型返回的调用意图（FunctionCall）。客户端只负责透出，不执行。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional


FunctionCallingMode = Literal["AUTO", "ANY", "NONE"]
FUNCTION_CALLING_MODES = ("AUTO", "ANY", "NONE")


@dataclass
class FunctionParam:
    """单个函数参数的定义。"""

    name: str
    description: str
    required: bool
    schema: Dict[str, Any]


@dataclass
class FunctionDef:
    """一个可供模型调用的函数声明。

    参数既可以通过 params 逐个描述，也可以直接给出完整的
    parameters_schema（JSON Schema），后者优先。
    """

    name: str
    description: str
    params: Dict[str, FunctionParam] = field(default_factory=dict)
    parameters_schema: Optional[Dict[str, Any]] = None

    def to_payload(self) -> Dict[str, Any]:
        """转成后端 functionDeclarations 中的一项。"""

        payload: Dict[str, Any] = {"name": self.name, "description": self.description}
        if self.parameters_schema is not None:
            payload["parametersJsonSchema"] = self.parameters_schema
            return payload
        if not self.params:
            return payload
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for name, param in self.params.items():
            schema = param.schema or {"type": "string"}
            if param.description:
                schema = {**schema, "description": param.description}
            properties[name] = schema
            if param.required:
                required.append(name)
        payload["parametersJsonSchema"] = {
            "type": "object",
            "properties": properties,
            "required": required,
        }
        return payload


@dataclass
class FunctionCall:
    """模型发起的一次函数调用意图。"""

    id: str
    name: str
    arguments: Dict[str, Any]
