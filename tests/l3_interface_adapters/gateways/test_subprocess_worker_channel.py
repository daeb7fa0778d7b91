"""Tests for SubprocessWorkerChannel — mocks the subprocess layer."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import numpy as np

from whisper_session.l1_entities.worker_messages import (
    CheckModelRequest,
    ErrorEvent,
    ModelReadyEvent,
    ProgressEvent,
    TranscribeRequest,
)
from whisper_session.l3_interface_adapters.gateways.subprocess_worker_channel import (
    SubprocessWorkerChannel,
    _subprocess_entry,  # noqa: PLC2701 -- testing private helper
)

MODULE = 'whisper_session.l3_interface_adapters.gateways.subprocess_worker_channel'


def _make_ctx(parent_responses: list[dict]) -> tuple[MagicMock, MagicMock, MagicMock]:
    """Build a mock mp context with Pipe returning a controlled parent Connection.

    parent_responses: sequence of dicts returned by parent_conn.recv() in order.
    parent_conn.poll() always returns True (data immediately available).
    """
    parent_conn = MagicMock()
    parent_conn.poll.return_value = True
    parent_conn.recv.side_effect = parent_responses

    child_conn = MagicMock()

    process = MagicMock()
    process.is_alive.return_value = False

    ctx = MagicMock()
    ctx.Pipe.return_value = (parent_conn, child_conn)
    ctx.Process.return_value = process

    return ctx, parent_conn, process


def _check() -> CheckModelRequest:
    return CheckModelRequest(model='base', dtype='q8_0', gpu=False)


class TestLifecycle:
    def test_first_send_starts_process(self):
        ctx, parent_conn, process = _make_ctx([])
        with patch(f'{MODULE}.mp.get_context', return_value=ctx) as get_ctx:
            channel = SubprocessWorkerChannel(models_dir='/models')
            assert not channel.is_running
            channel.send(_check())
            channel.send(_check())

        get_ctx.assert_called_once_with('spawn')
        process.start.assert_called_once()
        assert ctx.Process.call_args.kwargs['args'][1] == '/models'
        assert parent_conn.send.call_count == 2
        assert parent_conn.send.call_args.args[0]['action'] == 'check_model'
        assert channel.is_running

    def test_transcribe_request_sent_as_dict(self):
        ctx, parent_conn, _ = _make_ctx([])
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(TranscribeRequest(audio=np.ones(4, dtype=np.float32), model='base', dtype='q8_0', gpu=False))

        payload = parent_conn.send.call_args.args[0]
        assert payload['action'] == 'transcribe'
        np.testing.assert_array_equal(payload['audio'], np.ones(4, dtype=np.float32))

    def test_close_sends_sentinel_and_joins(self):
        ctx, parent_conn, process = _make_ctx([])
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            channel.close()

        parent_conn.send.assert_called_with(None)
        parent_conn.close.assert_called_once()
        process.join.assert_called_once_with(timeout=5)
        process.terminate.assert_not_called()
        assert not channel.is_running

    def test_close_terminates_stuck_process(self):
        ctx, _, process = _make_ctx([])
        process.is_alive.return_value = True
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            channel.close()
        process.terminate.assert_called_once()

    def test_close_without_start_is_safe(self):
        SubprocessWorkerChannel().close()


class TestReceive:
    def test_parses_events(self):
        ctx, parent_conn, _ = _make_ctx(
            [{'status': 'progress', 'file': 'a.bin', 'progress': 0.5}, {'status': 'model_ready'}]
        )
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            first = channel.receive(1.0)
            second = channel.receive(1.0)

        assert isinstance(first, ProgressEvent)
        assert first.progress == 0.5
        assert isinstance(second, ModelReadyEvent)
        parent_conn.poll.assert_called_with(1.0)

    def test_timeout_returns_none(self):
        ctx, parent_conn, _ = _make_ctx([])
        parent_conn.poll.return_value = False
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            assert channel.receive(0.1) is None

    @patch(f'{MODULE}.time.sleep')
    def test_not_started_sleeps(self, mock_sleep):
        assert SubprocessWorkerChannel().receive(0.2) is None
        mock_sleep.assert_called_once_with(0.2)

    def test_eof_becomes_error_event(self):
        ctx, parent_conn, process = _make_ctx([])
        parent_conn.recv.side_effect = EOFError
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            event = channel.receive(1.0)

        assert isinstance(event, ErrorEvent)
        assert 'exited unexpectedly' in event.data.message
        process.join.assert_called()
        assert not channel.is_running

    def test_malformed_event(self):
        ctx, _, _ = _make_ctx([{'status': 'bogus'}])
        with patch(f'{MODULE}.mp.get_context', return_value=ctx):
            channel = SubprocessWorkerChannel()
            channel.send(_check())
            event = channel.receive(1.0)

        assert isinstance(event, ErrorEvent)
        assert event.data.message.startswith('Malformed worker event')


class TestSubprocessEntry:
    @patch(f'{MODULE}.os.close')
    @patch(f'{MODULE}.os.dup2')
    @patch(f'{MODULE}.os.open', return_value=99)
    def test_loop_until_sentinel(self, _open, _dup2, _close):
        conn = MagicMock()
        conn.recv.side_effect = [{'action': 'check_model', 'model': 'base', 'dtype': 'q8_0', 'gpu': False}, None]
        handler = MagicMock()

        with (
            patch('whisper_session.l2_use_cases.worker_request_handler.WorkerRequestHandler', return_value=handler),
            patch('whisper_session.l3_interface_adapters.gateways.hf_model_store.HfModelStore') as store_cls,
        ):
            _subprocess_entry(conn, '/models')

        store_cls.assert_called_once()
        handler.handle.assert_called_once()
        assert isinstance(handler.handle.call_args.args[0], CheckModelRequest)
        handler.close.assert_called_once()
        conn.close.assert_called_once()

    @patch(f'{MODULE}.os.close')
    @patch(f'{MODULE}.os.dup2')
    @patch(f'{MODULE}.os.open', return_value=99)
    def test_malformed_request_reported(self, _open, _dup2, _close):
        conn = MagicMock()
        conn.recv.side_effect = [{'action': 'nope'}, EOFError]
        handler = MagicMock()

        with (
            patch('whisper_session.l2_use_cases.worker_request_handler.WorkerRequestHandler', return_value=handler),
            patch('whisper_session.l3_interface_adapters.gateways.hf_model_store.HfModelStore'),
        ):
            _subprocess_entry(conn, None)

        handler.handle.assert_not_called()
        sent = conn.send.call_args.args[0]
        assert sent['status'] == 'error'
        assert sent['data']['message'].startswith('Malformed request')
