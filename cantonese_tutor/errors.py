class ApiError(Exception):
    """Client request error rendered as {error, message}."""
    status = 400
    code = 'bad_request'
    message = 'Bad request'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'error': self.code, 'message': self.message}


class MissingSessionId(ApiError):
    code = 'session_id_required'
    message = 'sessionId is required'


class MissingAudioData(ApiError):
    code = 'audio_data_required'
    message = 'audioData is required'


class ProviderError(Exception):
    """A chat or speech provider was unavailable or answered badly."""
