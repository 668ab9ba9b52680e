"""Split one large input into token-budgeted chunks.

Used when a single input is too big for one model call and must be fed
across several. Each chunk leaves room for the *other* data going out with
it: a caller reducing over a long document typically sends its running
summary with every chunk, so the budget for chunk N is the context window
minus the tokens of that summary.

    splitter = Splitter.new(document, Model.from_name("gpt-4o-mini"))
    summary = ""
    while not splitter.done:
        chunk, splitter = splitter.next_chunk(summary)
        summary = summarise(summary, chunk)

Splitters are immutable: next_chunk returns the chunk and the next state.
There are no error states. A finished splitter, or one whose bespoke input
fills the whole window, returns an empty chunk and the state unchanged.
"""

from typing import Any, Iterator

from pydantic import BaseModel, ConfigDict, Field

from promptkit.llm.model import Model
from promptkit.utils.logging import log, get_logger

MODULE = "prompts.splitter"
logger = get_logger()


class Splitter(BaseModel):
    """Restartable token-budget chunker over one input."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    model: Model
    input: str
    input_tokens: tuple[Any, ...] = Field(..., description="Tokenized input, computed once")
    offset: int = Field(default=0, ge=0)
    done: bool = False

    @classmethod
    def new(cls, input: str, model: Model) -> "Splitter":
        """Tokenize ``input`` once with the model's tokenizer."""
        tokens = tuple(model.encode(input))
        log.debug(logger, MODULE, "split_start", "Splitter created",
                  model=model.name, input_tokens=len(tokens),
                  context_window=model.context_window)
        return cls(model=model, input=input, input_tokens=tokens)

    @property
    def remaining_tokens(self) -> int:
        return len(self.input_tokens) - self.offset

    def next_chunk(self, bespoke_input: str = "") -> tuple[str, "Splitter"]:
        """Return the next chunk and the advanced splitter.

        The chunk holds at most ``context_window - len(tokens(bespoke_input))``
        tokens of the input.
        """
        if self.done:
            return "", self

        bespoke_len = len(self.model.encode(bespoke_input))
        budget = self.model.context_window - bespoke_len
        if budget <= 0:
            log.warning(logger, MODULE, "chunk_skipped",
                        "Bespoke input leaves no room for a chunk",
                        bespoke_tokens=bespoke_len,
                        context_window=self.model.context_window,
                        offset=self.offset)
            return "", self

        token_slice = self.input_tokens[self.offset:self.offset + budget]
        text = self.model.decode(list(token_slice))
        new_offset = self.offset + len(token_slice)
        done = new_offset >= len(self.input_tokens)

        log.debug(logger, MODULE, "chunk_done", "Chunk produced",
                  offset=new_offset, consumed=len(token_slice),
                  budget=budget, done=done)
        if done:
            log.debug(logger, MODULE, "split_done", "Input fully consumed",
                      input_tokens=len(self.input_tokens))

        return text, self.model_copy(update={"offset": new_offset, "done": done})

    def chunks(self, bespoke_input: str = "") -> Iterator[str]:
        """Yield chunks with a fixed bespoke input until the input is consumed.

        Stops early if a call makes no progress (bespoke input too large).
        """
        splitter = self
        while not splitter.done:
            chunk, advanced = splitter.next_chunk(bespoke_input)
            if advanced is splitter:
                return
            splitter = advanced
            yield chunk
