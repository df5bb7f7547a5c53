from gemini_core.tools.definitions import FunctionDef, FunctionParam


def test_function_def_payload_from_params():
    fn = FunctionDef(
        name="control_light",
        description="Controls the light",
        params={
            "brightness": FunctionParam("brightness", "0-100", True, {"type": "number"}),
            "color": FunctionParam("color", "", False, {}),
        },
    )
    payload = fn.to_payload()
    schema = payload["parametersJsonSchema"]
    assert schema["properties"]["brightness"] == {"type": "number", "description": "0-100"}
    assert schema["properties"]["color"] == {"type": "string"}
    assert schema["required"] == ["brightness"]


def test_function_def_explicit_schema_wins():
    schema = {"type": "object", "properties": {"city": {"type": "string"}}}
    fn = FunctionDef(name="weather", description="Weather", parameters_schema=schema)
    assert fn.to_payload() == {"name": "weather", "description": "Weather", "parametersJsonSchema": schema}


def test_function_def_without_params():
    assert FunctionDef(name="ping", description="Ping").to_payload() == {"name": "ping", "description": "Ping"}
