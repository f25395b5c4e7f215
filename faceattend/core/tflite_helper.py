# faceattend/core/tflite_helper.py
"""
Loads a TFLite interpreter.
Prefers tflite_runtime (light, for the Pi), falls back to full tensorflow.
"""
import logging

logger = logging.getLogger(__name__)

# Log the chosen runtime only once
_logged_runtime = False


def get_interpreter(model_path, num_threads=4):
    """
    Create a TFLite Interpreter for `model_path`.

    Raises:
        ImportError: neither tflite_runtime nor tensorflow is installed
    """
    global _logged_runtime
    num_threads = max(1, int(num_threads))

    try:
        from tflite_runtime.interpreter import Interpreter
        if not _logged_runtime:
            logger.info(f"[TFLite] Using tflite_runtime (threads={num_threads})")
            _logged_runtime = True
        return Interpreter(model_path=model_path, num_threads=num_threads)
    except ImportError:
        pass

    try:
        import tensorflow as tf
        if not _logged_runtime:
            logger.info(f"[TFLite] Using tensorflow.lite (threads={num_threads})")
            _logged_runtime = True
        return tf.lite.Interpreter(model_path=model_path, num_threads=num_threads)
    except ImportError:
        pass

    raise ImportError(
        "No TFLite interpreter found!\n"
        "Install one of:\n"
        "  - pip install tflite-runtime  (light, for Pi)\n"
        "  - pip install tensorflow      (full, for PC)"
    )
