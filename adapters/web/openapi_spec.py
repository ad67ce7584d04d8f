# adapters/web/openapi_spec.py
# OpenAPI 3.0 descriptor for the REST API.

_JOB_ID_PARAM = {
    "name": "job_id",
    "in": "path",
    "required": True,
    "schema": {"type": "string", "format": "uuid"},
}

OPENAPI_SPEC = {
    "openapi": "3.0.0",
    "info": {
        "title": "Remixer API",
        "description": "Tempo, pitch and reverb processing for a single audio file. Output is always MP3.",
        "version": "1.0.0"
    },
    "servers": [
        {
            "url": "/api/v1",
            "description": "API V1"
        }
    ],
    "components": {
        "securitySchemes": {
            "bearerAuth": {
                "type": "http",
                "scheme": "bearer"
            }
        }
    },
    "security": [
        {
            "bearerAuth": []
        }
    ],
    "paths": {
        "/process": {
            "post": {
                "summary": "Start a processing job",
                "requestBody": {
                    "required": True,
                    "content": {
                        "multipart/form-data": {
                            "schema": {
                                "type": "object",
                                "properties": {
                                    "file": {
                                        "type": "string",
                                        "format": "binary",
                                        "description": "The audio file to process (max 100MB)."
                                    },
                                    "tempo": {"type": "number", "minimum": 0.5, "maximum": 2.0, "default": 0.8},
                                    "pitch": {"type": "integer", "minimum": -12, "maximum": 12, "default": 0},
                                    "reverb": {"type": "integer", "minimum": 0, "maximum": 100, "default": 50},
                                    "preset": {
                                        "type": "string",
                                        "description": "Preset id; overrides tempo/pitch/reverb (see /presets)."
                                    }
                                },
                                "required": ["file"]
                            }
                        }
                    }
                },
                "responses": {
                    "202": {
                        "description": "Job created",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "jobId": {"type": "string", "example": "123e4567-e89b-42d3-a456-426614174000"}
                                    }
                                }
                            }
                        }
                    },
                    "400": {"description": "Missing file or unknown preset"},
                    "415": {"description": "Not a recognised audio file"}
                }
            }
        },
        "/status/{job_id}": {
            "get": {
                "summary": "Check job status",
                "parameters": [_JOB_ID_PARAM],
                "responses": {
                    "200": {
                        "description": "Job status",
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "properties": {
                                        "status": {"type": "string", "enum": ["queued", "processing", "done", "error"]},
                                        "progress": {"type": "integer", "minimum": 0, "maximum": 100},
                                        "step": {"type": "string"},
                                        "error": {"type": "string", "nullable": True}
                                    }
                                }
                            }
                        }
                    }
                }
            }
        },
        "/download/{job_id}": {
            "get": {
                "summary": "Download the processed MP3",
                "parameters": [_JOB_ID_PARAM],
                "responses": {
                    "200": {
                        "description": "Audio file",
                        "content": {
                            "audio/mp3": {}
                        }
                    },
                    "404": {
                        "description": "Job not found, failed, expired or still processing"
                    }
                }
            }
        },
        "/presets": {
            "get": {
                "summary": "List effect presets",
                "responses": {
                    "200": {"description": "Presets in display order"}
                }
            }
        }
    }
}
