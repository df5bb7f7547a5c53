"""Minimal demonstration of the Gemini client."""

import asyncio

from gemini_core.api.service import create_default_client
from gemini_core.tools.definitions import FunctionDef, FunctionParam


async def main() -> None:
    client = create_default_client()
    if client is None:
        return
    if not await client.test_connection():
        print("Gemini is not reachable")
        return
    print("Model:", client.get_model_info())

    result = await client.generate("Tell a short joke about programmers.")
    print("Answer:", result.text)
    print("Usage:", result.usage)

    async for chunk in client.generate_stream("Write a short poem about Python."):
        if not chunk.done:
            print(chunk.text, end="", flush=True)
    print()

    client.start_session("You are a programming assistant. Keep answers short.")
    reply = await client.send_message("How do I declare a variable in Python?")
    print("Reply:", reply.text)
    async for chunk in client.send_message_stream("Explain generics in simple words."):
        if not chunk.done:
            print(chunk.text, end="", flush=True)
    print()

    for i, record in enumerate(client.get_history(), 1):
        print(f"{i}. [{record.role}] {record.content[:100]}")

    client.reconfigure(temperature=0.9, max_output_tokens=4096)
    reply = await client.send_message("Suggest a creative name for an AI chat app.")
    print("Creative:", reply.text)

    light = FunctionDef(
        name="control_light",
        description="Controls the room lighting",
        params={
            "brightness": FunctionParam("brightness", "Brightness from 0 to 100", True, {"type": "number"}),
            "color_temperature": FunctionParam(
                "color_temperature", "warm, neutral or cool", True, {"type": "string"}
            ),
        },
    )
    result = await client.generate_with_functions("Make the light warmer and dim it to 30%", [light], "ANY")
    print("Function calls:", result.function_calls)

    client.reset()


if __name__ == "__main__":
    asyncio.run(main())
