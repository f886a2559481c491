import json

import numpy as np
import pandas as pd
import pytest

import mlflow

from KNNModel import KNNModel
from constants import PREPROCESSING_NORMALIZED, PREPROCESSING_RAW, WEIGHT_MODE_FEATURES
from partition import Partition


def test_prediction_matches_evaluation(tmp_path, iris_path):
    df = pd.read_csv(iris_path)

    mlflow.set_tracking_uri(f"file:{tmp_path.as_posix()}/mlruns")

    obj_knnmodel = KNNModel(k=3, weight_mode=WEIGHT_MODE_FEATURES, preprocessing=PREPROCESSING_RAW)

    with mlflow.start_run() as run:
        obj_knnmodel.preprocessing_pipeline(df)
        obj_knnmodel.split(0.8, seed=1234)
        report, confusion = obj_knnmodel.evaluate()

    assert report.total == 6
    assert 0.0 <= report.accuracy <= 1.0
    assert confusion.matrix.sum() + confusion.unclassified == report.total

    logged = mlflow.get_run(run.info.run_id).data
    assert logged.metrics['accuracy'] == pytest.approx(report.accuracy)
    assert logged.params['k'] == '3'

    # Single-row inference must agree with the evaluation loop
    test_df = obj_knnmodel.partition.test.to_dataframe()
    inference_predictions = [
        obj_knnmodel.predict(row[:-1]) for row in test_df.itertuples(index=False, name=None)
    ]
    assert inference_predictions == report.predicted, 'Inference predictions are not as expected'


def test_normalized_inference_uses_fitted_scalers(iris_path):
    df = pd.read_csv(iris_path)
    obj_knnmodel = KNNModel(k=1, weight_mode=WEIGHT_MODE_FEATURES, preprocessing=PREPROCESSING_NORMALIZED)
    dataset = obj_knnmodel.preprocessing_pipeline(df)
    assert dataset.preprocessing == PREPROCESSING_NORMALIZED
    assert min(dataset[0].values) == pytest.approx(0.0)
    assert max(dataset[0].values) == pytest.approx(1.0)

    query = obj_knnmodel.preprocessing_pipeline_inference(df.iloc[0, :-1].tolist())
    np.testing.assert_allclose(query.feature_vector(), dataset.instance(0).feature_vector())
    assert obj_knnmodel.predict(df.iloc[0, :-1].tolist()) == 'setosa'


def test_sequential_split_and_saved_partition(tmp_path, iris_path):
    obj_knnmodel = KNNModel(k=1, weight_mode=WEIGHT_MODE_FEATURES)
    obj_knnmodel.preprocessing_pipeline(pd.read_csv(iris_path), weights=['1', '1', '0.5', '0.5', '1'])
    partition = obj_knnmodel.split(0.5, seed=None)
    assert partition.train.n_cases == 15
    assert partition.train.feature_weights() == [1.0, 1.0, 0.5, 0.5]

    train_path, test_path = obj_knnmodel.save_partition(tmp_path / "splits")
    loaded = Partition.load(train_path, test_path)
    assert loaded.test.n_cases == 15
    assert loaded.classes == ['setosa', 'versicolor', 'virginica']


def test_model_guards():
    with pytest.raises(ValueError):
        KNNModel(k=0)
    obj_knnmodel = KNNModel()
    with pytest.raises(RuntimeError):
        obj_knnmodel.split()
    with pytest.raises(RuntimeError):
        obj_knnmodel.predict([1.0, 2.0])
    obj_knnmodel.preprocessing_pipeline(pd.DataFrame({'x': ['1', '2'], 'class': ['a', 'b']}))
    with pytest.raises(ValueError):
        obj_knnmodel.split(1.5)
    with pytest.raises(ValueError):
        obj_knnmodel.predict([1.0, 2.0])


def test_report_is_json_serializable(iris_path):
    obj_knnmodel = KNNModel(k=5, weight_mode=WEIGHT_MODE_FEATURES)
    obj_knnmodel.preprocessing_pipeline(pd.read_csv(iris_path))
    obj_knnmodel.split(0.8, seed=7)
    report, confusion = obj_knnmodel.evaluate()
    payload = json.loads(json.dumps({'report': report.to_dict(), 'confusion': confusion.to_dict()}))
    assert payload['confusion']['labels'] == obj_knnmodel.partition.classes
    assert payload['report']['total'] == 6
