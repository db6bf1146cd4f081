"""Constants for the evaluation harness."""

# Message roles
ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_TOOL = "tool"

# Agent loop termination reasons
TERMINATED_FINAL_ANSWER = "final_answer"
TERMINATED_MAX_ITERATIONS = "max_iterations"
TERMINATED_TIMEOUT = "timeout"

# Rubric dimensions, in the order they are presented to the grader
SCORE_FIELDS = ("accuracy", "completeness", "relevance", "clarity", "reasoning")
MIN_SCORE = 1
MAX_SCORE = 5
FAILED_SCORE = 0

# Default values
DEFAULT_MODEL_PROVIDER = "openai"
DEFAULT_MODEL_NAME = "gpt-4o"
DEFAULT_MAX_ITERATIONS = 10
DEFAULT_LOOP_TIMEOUT_S = 60.0
DEFAULT_EVAL_TIMEOUT_S = 120.0
DEFAULT_STARTUP_TIMEOUT_S = 30.0
DEFAULT_CONCURRENCY = 1
DEFAULT_METRICS_PORT = 9090

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant with access to tools. Use the tools when they "
    "help answer the user's request, then give a clear final answer."
)
