import argparse
import logging
import queue
import threading
from pathlib import Path

import cv2

from detkit import DetectorSettings, draw_detections, load_detector_settings, load_engine, setup_logging

logger = logging.getLogger("run_detector")


def _settings_from_args(args: argparse.Namespace) -> DetectorSettings:
    base = load_detector_settings(Path(args.config)) if args.config else DetectorSettings()
    input_width, input_height = base.input_width, base.input_height
    if args.imgsz is not None:
        input_width = input_height = int(args.imgsz)
    providers = base.providers
    if args.onnx_providers:
        providers = tuple(p.strip() for p in str(args.onnx_providers).split(",") if p.strip())

    return DetectorSettings(
        model_path=args.model or base.model_path,
        labels_path=args.labels or base.labels_path,
        camera_index=base.camera_index if args.webcam is None else int(args.webcam),
        score_threshold=base.score_threshold if args.conf is None else float(args.conf),
        nms_threshold=base.nms_threshold if args.iou is None else float(args.iou),
        input_width=input_width,
        input_height=input_height,
        providers=providers,
    )


def _capture_loop(
    cap, engine, settings: DetectorSettings, results: "queue.Queue", stop: threading.Event, errors: list
) -> None:
    # Worker thread: one detection cycle per frame, newest result wins.
    try:
        while not stop.is_set():
            ok, frame = cap.read()
            if not ok or frame is None:
                continue

            detections = engine.detect(frame, settings.score_threshold, settings.nms_threshold)
            try:
                results.get_nowait()
            except queue.Empty:
                pass
            results.put((frame, detections))
    except Exception as exc:
        logger.exception("Detection loop failed")
        errors.append(exc)
        stop.set()


def run_image(engine, settings: DetectorSettings, image_path: str, out_path=None, show: bool = False) -> int:
    img = cv2.imread(image_path)
    if img is None:
        raise FileNotFoundError(f"Could not read image at path: {image_path}")

    detections = engine.detect(img, settings.score_threshold, settings.nms_threshold)
    for det in detections:
        print(det.label, f"{det.confidence:.3f}", det.as_xyxy())

    vis = draw_detections(img, detections)
    if out_path:
        ok = cv2.imwrite(out_path, vis)
        if not ok:
            raise RuntimeError(f"Failed to write output image: {out_path}")
    if show:
        cv2.imshow("detections", vis)
        cv2.waitKey(0)
        cv2.destroyAllWindows()
    return 0


def run_camera(engine, settings: DetectorSettings) -> int:
    cap = cv2.VideoCapture(settings.camera_index)
    if not cap.isOpened():
        raise RuntimeError(f"Could not open webcam index: {settings.camera_index}")

    results: "queue.Queue" = queue.Queue(maxsize=1)
    stop = threading.Event()
    errors: list = []
    worker = threading.Thread(
        target=_capture_loop,
        args=(cap, engine, settings, results, stop, errors),
        name="detector-capture",
        daemon=True,
    )
    logger.info("Model: %s - Camera: %d", Path(settings.model_path).name, settings.camera_index)
    worker.start()

    try:
        while not stop.is_set():
            try:
                frame, detections = results.get(timeout=0.1)
            except queue.Empty:
                if cv2.waitKey(1) & 0xFF in (27, ord("q")):
                    break
                continue

            vis = draw_detections(frame, detections)
            cv2.putText(
                vis,
                f"Detections: {len(detections)}",
                (8, vis.shape[0] - 10),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.6,
                (255, 255, 255),
                1,
                cv2.LINE_AA,
            )
            cv2.imshow("detections", vis)
            if cv2.waitKey(1) & 0xFF in (27, ord("q")):
                break
    finally:
        stop.set()
        worker.join(timeout=5.0)
        cap.release()
        cv2.destroyAllWindows()

    return 1 if errors else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Run an ONNX object detector on an image or a live camera.")
    parser.add_argument("--config", default=None, help="Optional detector settings JSON.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default=None, help="Path to the .onnx model (default model/model.onnx).")
    parser.add_argument("--labels", default=None, help="Path to labels.txt (default model/labels.txt).")
    parser.add_argument("--imgsz", type=int, default=None, help="Model input size if known (e.g., 320 or 640).")
    parser.add_argument("--conf", type=float, default=None, help="Score threshold (default 0.40).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (default 0.45).")
    parser.add_argument(
        "--onnx-providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window for image mode.")
    parser.add_argument("--out", default=None, help="Optional output path for the visualized image.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    setup_logging(args.log_level)
    settings = _settings_from_args(args)

    with load_engine(
        settings.model_path,
        settings.labels_path,
        input_size=settings.input_size,
        onnx_providers=settings.providers,
    ) as engine:
        if args.image is not None:
            return run_image(engine, settings, args.image, out_path=args.out, show=args.show)
        return run_camera(engine, settings)


if __name__ == "__main__":
    raise SystemExit(main())
