"""Abstract interface for the response persistence collaborator.

The engine never stores responses itself.  When a session reaches the
``completed`` state it assembles a :class:`Response` and hands it to a
``ResponseSink``; the sink owns storage, retries and queueing.

Typical integration flow::

    store = FormStore()
    engine = FormEngine(store, sink=MyDatabaseSink(...))

    info = await engine.create_session("customer-feedback")
    step = await engine.submit_step(info.session_id, {"name": "Ada"})
    # ... eventually step.type == "completed" ...
    # step.submission_status is "submitted" or "failed"
"""

from abc import ABC, abstractmethod

from formflow.models.response import Response


class ResponseSink(ABC):
    """Interface for persisting submitted responses.

    Any exception raised by :meth:`submit` marks the submission as failed;
    the session keeps the assembled response so it can be retried.
    """

    @abstractmethod
    async def submit(self, response: Response) -> str:
        """Persist a response.

        Parameters
        ----------
        response:
            The assembled response.  Answers appear in form-definition
            order and never carry empty values.

        Returns
        -------
        str
            The id under which the collaborator stored the response.
        """
        ...
