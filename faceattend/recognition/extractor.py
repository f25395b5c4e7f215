# faceattend/recognition/extractor.py
"""
Descriptor extraction - frame in, face descriptor out (or nothing).

The engine only needs `extract(frame)`; `locate(frame)` also reports
where the face is. Any object with these methods can be plugged into the
sampling loop and enrollment, tests use a stub returning fixed vectors.

MobileFaceNetExtractor
======================
Detection: OpenCV Haar cascade, the largest face wins
Model:     MobileFaceNet.tflite (float32 or INT8 quantized)
Input:     [1, 112, 112, 3]
Output:    [1, 128] embedding, dequantized and L2 normalized

Thread-safe: inference runs under a lock.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from ..core.tflite_helper import get_interpreter
from ..data.models import BoundingBox

logger = logging.getLogger(__name__)

DEFAULT_MODEL_PATH = "models/recognition/MobileFaceNet.tflite"
CASCADE_PATH = cv2.data.haarcascades + "haarcascade_frontalface_default.xml"

INPUT_HEIGHT = 112
INPUT_WIDTH = 112
EMBEDDING_DIM = 128


@dataclass
class FaceDetection:
    descriptor: np.ndarray
    box: Optional[BoundingBox] = None


class DescriptorExtractor:
    """Interface for the face embedding model."""

    def extract(self, frame) -> Optional[np.ndarray]:
        """Descriptor of the face in `frame`, None when no face is found."""
        raise NotImplementedError

    def locate(self, frame) -> Optional[FaceDetection]:
        descriptor = self.extract(frame)
        if descriptor is None:
            return None
        return FaceDetection(descriptor=np.asarray(descriptor, dtype=np.float32))


class MobileFaceNetExtractor(DescriptorExtractor):
    """Haar cascade detection + MobileFaceNet embedding."""

    def __init__(self, model_path=None, num_threads=4, min_face_size=60, interpreter=None):
        """
        Args:
            model_path: TFLite model (float32 or INT8)
            num_threads: interpreter threads
            min_face_size: smaller detections are ignored (pixels)
            interpreter: already built interpreter, skips loading
        """
        self._inference_lock = threading.Lock()
        self.model_path = model_path or DEFAULT_MODEL_PATH
        self.min_face_size = min_face_size

        self.cascade = cv2.CascadeClassifier(CASCADE_PATH)
        if self.cascade.empty():
            raise RuntimeError(f"Haar cascade not found: {CASCADE_PATH}")

        self.interpreter = interpreter or get_interpreter(self.model_path, num_threads)
        self.interpreter.allocate_tensors()
        input_details = self.interpreter.get_input_details()[0]
        output_details = self.interpreter.get_output_details()[0]

        self._input_index = input_details['index']
        self._output_index = output_details['index']
        self._input_dtype = input_details['dtype']

        shape = tuple(int(d) for d in input_details.get('shape', (1, INPUT_HEIGHT, INPUT_WIDTH, 3)))
        self.input_height = shape[1] if len(shape) >= 3 else INPUT_HEIGHT
        self.input_width = shape[2] if len(shape) >= 3 else INPUT_WIDTH

        out_shape = output_details.get('shape', (1, EMBEDDING_DIM))
        self.embedding_dim = int(out_shape[-1]) if len(out_shape) >= 2 else EMBEDDING_DIM

        # Quantization parameters, identity for float models
        self._input_scale, self._input_zero_point = 1.0, 0
        self._output_scale, self._output_zero_point = 1.0, 0
        in_quant = input_details.get('quantization_parameters', {})
        if len(in_quant.get('scales', [])):
            self._input_scale = float(in_quant['scales'][0])
            self._input_zero_point = int(in_quant['zero_points'][0])
        out_quant = output_details.get('quantization_parameters', {})
        if len(out_quant.get('scales', [])):
            self._output_scale = float(out_quant['scales'][0])
            self._output_zero_point = int(out_quant['zero_points'][0])

        logger.info(f"[Extractor] Model: {self.model_path} "
                    f"(input {self.input_width}x{self.input_height} {np.dtype(self._input_dtype).name}, "
                    f"dim={self.embedding_dim})")

    def detect_faces(self, frame):
        """All face boxes in the frame, largest first."""
        if frame is None or frame.size == 0:
            return []
        gray = frame if frame.ndim == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        faces = self.cascade.detectMultiScale(
            gray,
            scaleFactor=1.1,
            minNeighbors=5,
            minSize=(self.min_face_size, self.min_face_size)
        )
        boxes = [BoundingBox(int(x), int(y), int(w), int(h)) for (x, y, w, h) in faces]
        boxes.sort(key=lambda b: b.area, reverse=True)
        return boxes

    def _preprocess(self, face_img):
        """Resize, BGR -> RGB, normalize to [-1, 1], quantize if needed."""
        img = cv2.resize(face_img, (self.input_width, self.input_height))
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
        else:
            img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

        img = (img.astype(np.float32) - 127.5) / 127.5
        if self._input_dtype == np.int8:
            img = np.clip(img / self._input_scale + self._input_zero_point, -128, 127).astype(np.int8)
        elif self._input_dtype == np.uint8:
            img = np.clip(img / self._input_scale + self._input_zero_point, 0, 255).astype(np.uint8)
        return img[np.newaxis, ...]

    def _dequantize(self, output):
        if output.dtype in (np.int8, np.uint8):
            return (output.astype(np.float32) - self._output_zero_point) * self._output_scale
        return output.astype(np.float32)

    def embed(self, face_img) -> np.ndarray:
        """L2-normalized descriptor of a cropped face."""
        tensor = self._preprocess(face_img)
        with self._inference_lock:
            self.interpreter.set_tensor(self._input_index, tensor)
            self.interpreter.invoke()
            output = self.interpreter.get_tensor(self._output_index)
            emb = np.array(self._dequantize(output)[0], dtype=np.float32, copy=True)
        return emb / (np.linalg.norm(emb) + 1e-10)

    def locate(self, frame) -> Optional[FaceDetection]:
        boxes = self.detect_faces(frame)
        if not boxes:
            return None
        box = boxes[0]
        face = frame[box.y:box.y + box.height, box.x:box.x + box.width]
        if face.size == 0:
            return None
        return FaceDetection(descriptor=self.embed(face), box=box)

    def extract(self, frame) -> Optional[np.ndarray]:
        detection = self.locate(frame)
        return detection.descriptor if detection else None
