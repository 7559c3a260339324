"""Design tokenization: payload, transaction, submission and orchestration."""

from .builder import BuiltTransaction, TransactionBuilder
from .errors import Disposition, ErrorKind, TokenizationError, classify
from .journal import TokenizationJobService, TokenizationJournal
from .models import JobError, JobStatus, LedgerAccountHandle, TokenizationJob
from .orchestrator import JobNotFoundError, TokenizationOrchestrator
from .reader import decode_account_data, read_designs
from .serializer import MAX_PAYLOAD_BYTES, deserialize, serialize
from .submission import Confirmation, LandedStatus, SubmissionClient

__all__ = [
    "BuiltTransaction",
    "Confirmation",
    "Disposition",
    "ErrorKind",
    "JobError",
    "JobNotFoundError",
    "JobStatus",
    "LandedStatus",
    "LedgerAccountHandle",
    "MAX_PAYLOAD_BYTES",
    "SubmissionClient",
    "TokenizationError",
    "TokenizationJob",
    "TokenizationJobService",
    "TokenizationJournal",
    "TokenizationOrchestrator",
    "TransactionBuilder",
    "classify",
    "decode_account_data",
    "deserialize",
    "read_designs",
    "serialize",
]
