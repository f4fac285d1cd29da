import warnings
from typing import Any, Callable, Iterator

import litellm
from litellm import completion as litellm_completion

warnings.filterwarnings("ignore", message="Pydantic serializer warnings")
litellm.drop_params = True


def completion(
    model: str,
    messages: list[dict],
    stream: bool = False,
    temperature: float = 0.0,
    max_tokens: int = 4096,
    **kwargs,
) -> Any:
    params = {
        "model": model,
        "messages": messages,
        "stream": stream,
        "temperature": temperature,
        "max_tokens": max_tokens,
        **kwargs,
    }
    return litellm_completion(**params)


def iter_text_deltas(stream: Any) -> Iterator[str]:
    for chunk in stream:
        choices = getattr(chunk, "choices", None) or []
        if not choices:
            continue
        delta = choices[0].delta
        content = getattr(delta, "content", None)
        if content:
            yield content


def stream_text(
    model: str,
    messages: list[dict],
    on_delta: Callable[[str], None],
    temperature: float = 0.0,
    max_tokens: int = 4096,
    **kwargs,
) -> str:
    stream = completion(
        model=model,
        messages=messages,
        stream=True,
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )
    accumulated = ""
    for text in iter_text_deltas(stream):
        accumulated += text
        on_delta(text)
    return accumulated